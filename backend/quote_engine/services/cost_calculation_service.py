"""
成本计算服务
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quote_engine.core.database import unit_of_work
from quote_engine.core.exceptions import NotFoundException, StepEquipmentMissingError
from quote_engine.models.costing import (
    CostCalculation, CostCalculationDetail, Equipment, ProcessStep
)
from quote_engine.models.enums import CalculationStatus, ensure_calculation_transition
from quote_engine.schemas.costing import (
    CostCalculationDetailResponse, CostCalculationRequest, CostCalculationResponse,
    CostParameterSnapshot, CostSummaryResponse, PaginatedCalculationListResponse,
    ProcessCostBreakdown
)
from quote_engine.services.cost_parameters import CostParameterService, cost_parameter_service
from quote_engine.services.costing_engine import (
    EquipmentRate, StepInput, calculate_cost_breakdown, resolve_margin, validate_quantity
)
from quote_engine.services.numbering import CALCULATION_PREFIX, SequenceService, sequence_service
from quote_engine.services.route_catalog import LoadedRoute, RouteCatalog, route_catalog


class CostCalculationService:
    """成本计算服务"""

    def __init__(
        self,
        catalog: RouteCatalog = None,
        parameters: CostParameterService = None,
        sequences: SequenceService = None
    ):
        self.catalog = catalog or route_catalog
        self.parameters = parameters or cost_parameter_service
        self.sequences = sequences or sequence_service

    async def calculate_cost(
        self,
        db: AsyncSession,
        request: CostCalculationRequest,
        parameters: Optional[CostParameterSnapshot] = None
    ) -> CostCalculationResponse:
        """
        计算产品成本并保存

        计算主档、工序明细、自定义路线在同一事务内写入，
        任一步失败整体回滚。parameters 未提供时在计算开始时取一次快照。
        """
        # 先做不依赖数据库的校验
        validate_quantity(request.quantity)
        resolve_margin(request.margin_percentage)

        async with unit_of_work(db, "成本计算"):
            if parameters is None:
                parameters = await self.parameters.get_current_parameters(db)

            loaded = await self.catalog.resolve_route(db, request)
            step_inputs = await self._build_step_inputs(db, loaded)

            breakdown = calculate_cost_breakdown(
                steps=step_inputs,
                quantity=request.quantity,
                material_cost=request.material_cost,
                parameters=parameters,
                margin_percentage=request.margin_percentage
            )

            calculation_no = await self.sequences.next_document_no(db, CALCULATION_PREFIX)
            calculation = CostCalculation(
                calculation_no=calculation_no,
                inquiry_id=request.inquiry_id,
                product_name=request.product_name,
                quantity=request.quantity,
                material_cost=breakdown.material_cost,
                process_cost=breakdown.process_cost,
                overhead_cost=breakdown.overhead_cost,
                total_cost=breakdown.total_cost,
                unit_cost=breakdown.unit_cost,
                margin_percentage=breakdown.margin_percentage,
                selling_price=breakdown.selling_price,
                route_id=loaded.route.id,
                parameter_snapshot=parameters.model_dump(mode="json"),
                status=CalculationStatus.DRAFT,
                calculated_by=request.calculated_by
            )
            db.add(calculation)
            await db.flush()

            details = [
                CostCalculationDetail(
                    calculation_id=calculation.id,
                    sequence=step.sequence,
                    process_step_id=step.process_step_id,
                    equipment_id=step.equipment_id,
                    setup_time=step.setup_time,
                    cycle_time=step.cycle_time,
                    yield_rate=step.yield_rate,
                    total_time_hours=step.total_time_hours,
                    labor_cost=step.labor_cost,
                    equipment_cost=step.equipment_cost,
                    electricity_cost=step.electricity_cost,
                    subtotal_cost=step.subtotal_cost,
                    yield_loss_cost=step.yield_loss_cost
                )
                for step in breakdown.steps
            ]
            db.add_all(details)
            await db.flush()

        logger.info(
            f"成本计算完成: {calculation.calculation_no} | 产品: {calculation.product_name} | "
            f"数量: {calculation.quantity} | 总成本: {calculation.total_cost} | 建议售价: {calculation.selling_price}"
        )
        return self._to_response(calculation, details)

    async def _build_step_inputs(self, db: AsyncSession, loaded: LoadedRoute) -> List[StepInput]:
        """解析每道工序的覆盖值与设备"""
        inputs = []
        for detail in loaded.details:
            step: ProcessStep = await self.catalog.get_process_step(db, detail.process_step_id)

            equipment_id = detail.equipment_id or step.default_equipment_id
            if equipment_id is None and step.requires_equipment:
                raise StepEquipmentMissingError(step.code, detail.sequence)

            equipment_rate = None
            if equipment_id is not None:
                equipment: Equipment = await self.catalog.get_equipment(db, equipment_id)
                equipment_rate = EquipmentRate(
                    equipment_id=equipment.id,
                    purchase_cost=Decimal(str(equipment.purchase_cost)),
                    depreciation_years=equipment.depreciation_years,
                    maintenance_cost_per_year=Decimal(str(equipment.maintenance_cost_per_year)),
                    power_consumption=Decimal(str(equipment.power_consumption))
                )

            setup_time = detail.setup_time_override
            if setup_time is None:
                setup_time = step.setup_time_minutes
            cycle_time = detail.cycle_time_override
            if cycle_time is None:
                cycle_time = step.cycle_time_seconds

            inputs.append(StepInput(
                sequence=detail.sequence,
                process_step_id=step.id,
                setup_time_minutes=Decimal(str(setup_time)),
                cycle_time_seconds=Decimal(str(cycle_time)),
                labor_required=step.labor_required,
                yield_rate=Decimal(str(detail.yield_rate)),
                equipment=equipment_rate
            ))
        return inputs

    async def _get_calculation(self, db: AsyncSession, calculation_id: UUID) -> CostCalculation:
        calculation = await db.get(CostCalculation, calculation_id)
        if not calculation:
            raise NotFoundException("成本计算", str(calculation_id))
        return calculation

    async def _get_details(self, db: AsyncSession, calculation_id: UUID) -> List[CostCalculationDetail]:
        query = select(CostCalculationDetail).where(
            CostCalculationDetail.calculation_id == calculation_id
        ).order_by(CostCalculationDetail.sequence)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_calculation(self, db: AsyncSession, calculation_id: UUID) -> CostCalculationResponse:
        """获取成本计算及明细"""
        calculation = await self._get_calculation(db, calculation_id)
        details = await self._get_details(db, calculation_id)
        return self._to_response(calculation, details)

    async def get_cost_summary(self, db: AsyncSession, calculation_id: UUID) -> CostSummaryResponse:
        """获取成本摘要（按工序拆分）"""
        calculation = await self._get_calculation(db, calculation_id)
        details = await self._get_details(db, calculation_id)

        step_names = await self._name_lookup(db, ProcessStep, {d.process_step_id for d in details})
        equipment_names = await self._name_lookup(
            db, Equipment, {d.equipment_id for d in details if d.equipment_id}
        )

        return CostSummaryResponse(
            calculation_no=calculation.calculation_no,
            material_cost=calculation.material_cost,
            process_cost=calculation.process_cost,
            overhead_cost=calculation.overhead_cost,
            total_cost=calculation.total_cost,
            unit_cost=calculation.unit_cost,
            suggested_price=calculation.selling_price,
            margin_percentage=calculation.margin_percentage,
            process_breakdown=[
                ProcessCostBreakdown(
                    sequence=d.sequence,
                    process_name=step_names.get(d.process_step_id, ""),
                    equipment_name=equipment_names.get(d.equipment_id),
                    total_time_hours=d.total_time_hours,
                    labor_cost=d.labor_cost,
                    equipment_cost=d.equipment_cost,
                    electricity_cost=d.electricity_cost,
                    total_cost=d.subtotal_cost + d.yield_loss_cost
                )
                for d in details
            ]
        )

    async def _name_lookup(self, db: AsyncSession, model, ids) -> Dict[UUID, str]:
        if not ids:
            return {}
        result = await db.execute(select(model.id, model.name).where(model.id.in_(ids)))
        return {row.id: row.name for row in result}

    async def list_calculations(
        self,
        db: AsyncSession,
        status: Optional[CalculationStatus] = None,
        inquiry_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 20
    ) -> PaginatedCalculationListResponse:
        """分页查询成本计算（不含明细）"""
        query = select(CostCalculation)
        if status:
            query = query.where(CostCalculation.status == status)
        if inquiry_id:
            query = query.where(CostCalculation.inquiry_id == inquiry_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        offset = (page - 1) * page_size
        query = query.order_by(desc(CostCalculation.created_at)).offset(offset).limit(page_size)
        calculations = (await db.execute(query)).scalars().all()

        return PaginatedCalculationListResponse(
            total=total,
            page=page,
            page_size=page_size,
            data=[self._to_response(c, []) for c in calculations]
        )

    async def submit_calculation(self, db: AsyncSession, calculation_id: UUID) -> CostCalculationResponse:
        """提交审核：draft -> submitted"""
        async with unit_of_work(db, "提交成本计算"):
            calculation = await self._get_calculation(db, calculation_id)
            ensure_calculation_transition(calculation.status, CalculationStatus.SUBMITTED)
            calculation.status = CalculationStatus.SUBMITTED

        logger.info(f"成本计算已提交审核: {calculation.calculation_no}")
        return await self.get_calculation(db, calculation_id)

    async def approve_calculation(
        self,
        db: AsyncSession,
        calculation_id: UUID,
        approver_id: UUID
    ) -> CostCalculationResponse:
        """审核成本计算：submitted -> approved，审核后不可再修改"""
        async with unit_of_work(db, "审核成本计算"):
            calculation = await self._get_calculation(db, calculation_id)
            ensure_calculation_transition(calculation.status, CalculationStatus.APPROVED)
            calculation.status = CalculationStatus.APPROVED
            calculation.approved_by = approver_id
            calculation.approved_at = datetime.now()

        logger.info(f"成本计算已审核: {calculation.calculation_no} | 审核人: {approver_id}")
        return await self.get_calculation(db, calculation_id)

    def _to_response(
        self,
        calculation: CostCalculation,
        details: List[CostCalculationDetail]
    ) -> CostCalculationResponse:
        response = CostCalculationResponse.model_validate(calculation)
        response.details = [CostCalculationDetailResponse.model_validate(d) for d in details]
        return response


# 创建全局服务实例
cost_calculation_service = CostCalculationService()
