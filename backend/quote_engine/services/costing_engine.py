"""
工序成本计算引擎（纯计算，不访问数据库）

单道工序：
    总工时(h) = 准备时间(min)/60 + 节拍(s) × 数量 / 3600
    人工成本 = 总工时 × 人工费率 × 人数
    设备成本 = 总工时 × (购置成本/(折旧年限×年工时) + 年维护费/年工时)
    电费     = 总工时 × 功率 × 电价
    小计     = 人工 + 设备 + 电费
    良率损失 = 小计 × (100 - 良率)/100

汇总：
    加工成本 = Σ(小计 + 良率损失)
    管理费用 = 加工成本 × 管理费率
    总成本   = 材料成本 + 加工成本 + 管理费用
    建议售价 = 总成本 / (1 - 毛利率/100)

金额在计算处即四舍五入到分（与原系统结果保持一致），
良率损失基于未取整的小计计算。
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence
from uuid import UUID

from quote_engine.core.config import settings
from quote_engine.core.exceptions import InvalidMarginError, InvalidQuantityError
from quote_engine.schemas.costing import CostParameterSnapshot

CENT = Decimal("0.01")
HOURS_PRECISION = Decimal("0.0001")
UNIT_COST_PRECISION = Decimal("0.000001")
HUNDRED = Decimal("100")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class EquipmentRate:
    """设备折旧/能耗参数"""
    equipment_id: UUID
    purchase_cost: Decimal
    depreciation_years: int
    maintenance_cost_per_year: Decimal
    power_consumption: Decimal


@dataclass(frozen=True)
class StepInput:
    """已解析覆盖值后的工序输入"""
    sequence: int
    process_step_id: UUID
    setup_time_minutes: Decimal
    cycle_time_seconds: Decimal
    labor_required: int
    yield_rate: Decimal
    equipment: Optional[EquipmentRate] = None


@dataclass(frozen=True)
class StepCost:
    sequence: int
    process_step_id: UUID
    equipment_id: Optional[UUID]
    setup_time: Decimal
    cycle_time: Decimal
    yield_rate: Decimal
    total_time_hours: Decimal
    labor_cost: Decimal
    equipment_cost: Decimal
    electricity_cost: Decimal
    subtotal_cost: Decimal
    yield_loss_cost: Decimal

    @property
    def total_cost(self) -> Decimal:
        return self.subtotal_cost + self.yield_loss_cost


@dataclass(frozen=True)
class CostBreakdown:
    material_cost: Decimal
    process_cost: Decimal
    overhead_cost: Decimal
    total_cost: Decimal
    unit_cost: Decimal
    margin_percentage: Decimal
    selling_price: Decimal
    steps: List[StepCost]


def _dec(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity)
    return quantity


def resolve_margin(margin_percentage: Optional[Decimal]) -> Decimal:
    """未指定毛利率时使用缺省值；毛利率须在 [0, 100)"""
    if margin_percentage is None:
        return _dec(settings.DEFAULT_MARGIN_PERCENTAGE)
    margin = _dec(margin_percentage)
    if margin < 0 or margin >= HUNDRED:
        raise InvalidMarginError(margin)
    return margin


def calculate_step_cost(
    step: StepInput,
    quantity: int,
    parameters: CostParameterSnapshot,
    annual_hours: Optional[int] = None
) -> StepCost:
    """计算单道工序成本"""
    annual_hours = _dec(annual_hours or settings.ANNUAL_OPERATING_HOURS)

    total_time_hours = (
        step.setup_time_minutes / Decimal("60")
        + step.cycle_time_seconds * Decimal(quantity) / Decimal("3600")
    )

    labor_cost = total_time_hours * parameters.labor_rate * Decimal(step.labor_required)

    equipment_cost = Decimal("0")
    electricity_cost = Decimal("0")
    if step.equipment is not None:
        eq = step.equipment
        hourly_depreciation = Decimal("0")
        if eq.depreciation_years:
            hourly_depreciation = eq.purchase_cost / (Decimal(eq.depreciation_years) * annual_hours)
        hourly_maintenance = eq.maintenance_cost_per_year / annual_hours
        equipment_cost = total_time_hours * (hourly_depreciation + hourly_maintenance)
        electricity_cost = total_time_hours * eq.power_consumption * parameters.electricity_rate

    subtotal = labor_cost + equipment_cost + electricity_cost
    yield_loss = subtotal * (HUNDRED - step.yield_rate) / HUNDRED

    return StepCost(
        sequence=step.sequence,
        process_step_id=step.process_step_id,
        equipment_id=step.equipment.equipment_id if step.equipment else None,
        setup_time=step.setup_time_minutes,
        cycle_time=step.cycle_time_seconds,
        yield_rate=step.yield_rate,
        total_time_hours=total_time_hours.quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP),
        labor_cost=round_money(labor_cost),
        equipment_cost=round_money(equipment_cost),
        electricity_cost=round_money(electricity_cost),
        subtotal_cost=round_money(subtotal),
        yield_loss_cost=round_money(yield_loss),
    )


def calculate_cost_breakdown(
    steps: Sequence[StepInput],
    quantity: int,
    material_cost: Decimal,
    parameters: CostParameterSnapshot,
    margin_percentage: Optional[Decimal] = None,
    annual_hours: Optional[int] = None
) -> CostBreakdown:
    """按路线顺序计算全部工序并汇总"""
    quantity = validate_quantity(quantity)
    margin = resolve_margin(margin_percentage)
    material_cost = round_money(_dec(material_cost))

    step_costs = [
        calculate_step_cost(step, quantity, parameters, annual_hours)
        for step in sorted(steps, key=lambda s: s.sequence)
    ]

    process_cost = sum((s.total_cost for s in step_costs), Decimal("0"))
    overhead_cost = round_money(process_cost * parameters.overhead_rate / HUNDRED)
    total_cost = material_cost + process_cost + overhead_cost
    unit_cost = (total_cost / Decimal(quantity)).quantize(UNIT_COST_PRECISION, rounding=ROUND_HALF_UP)
    selling_price = round_money(total_cost / (Decimal("1") - margin / HUNDRED))

    return CostBreakdown(
        material_cost=material_cost,
        process_cost=process_cost,
        overhead_cost=overhead_cost,
        total_cost=total_cost,
        unit_cost=unit_cost,
        margin_percentage=margin,
        selling_price=selling_price,
        steps=step_costs,
    )
