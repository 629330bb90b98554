"""
成本计算服务测试
"""
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from quote_engine.core.exceptions import (
    InvalidQuantityError, InvalidStateTransitionError, NoRouteFoundError,
    NotFoundException, StepEquipmentMissingError
)
from quote_engine.models.costing import CostCalculation, CostCalculationDetail, ProductProcessRoute
from quote_engine.models.enums import CalculationStatus
from quote_engine.models.sequence import DocumentSequence
from quote_engine.schemas.costing import CostCalculationRequest, CostParameterSnapshot, CustomRouteStep
from quote_engine.services.cost_calculation_service import cost_calculation_service
from quote_engine.services.cost_parameters import cost_parameter_service


async def count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar()


class TestCostParameters:
    """成本参数快照"""

    @pytest.mark.asyncio
    async def test_defaults_when_table_empty(self, db_session):
        snapshot = await cost_parameter_service.get_current_parameters(db_session)
        assert snapshot.labor_rate == Decimal("15.0")
        assert snapshot.electricity_rate == Decimal("0.12")
        assert snapshot.overhead_rate == Decimal("150.0")

    @pytest.mark.asyncio
    async def test_latest_effective_parameter_wins(self, db_session, seed):
        today = date.today()
        await seed.parameter("labor_cost", "18", today - timedelta(days=30))
        await seed.parameter("labor_cost", "20", today - timedelta(days=1))
        await seed.parameter("labor_cost", "25", today + timedelta(days=10))
        await seed.parameter("overhead_rate", "120", today - timedelta(days=60), today - timedelta(days=5))

        snapshot = await cost_parameter_service.get_current_parameters(db_session)

        assert snapshot.labor_rate == Decimal("20")
        # 已失效的参数不生效
        assert snapshot.overhead_rate == Decimal("150.0")


class TestCalculateCost:
    """成本计算"""

    @pytest.mark.asyncio
    async def test_uses_category_default_route(self, db_session, seed):
        step = await seed.step()
        await seed.route("bracket", [step], is_default=False, route_name="备用路线")
        default_route = await seed.route("bracket", [step], is_default=True)
        await seed.commit()

        result = await cost_calculation_service.calculate_cost(
            db_session,
            CostCalculationRequest(
                product_name="支架", product_category="bracket",
                quantity=10000, material_cost=Decimal("100")
            )
        )

        assert result.route_id == default_route.id
        assert result.status == CalculationStatus.DRAFT
        assert result.process_cost == Decimal("220.15")
        assert result.overhead_cost == Decimal("330.23")
        assert result.total_cost == Decimal("650.38")
        assert result.selling_price == Decimal("929.11")
        assert len(result.details) == 1
        assert result.details[0].total_time_hours == Decimal("14.3889")
        assert result.parameter_snapshot == {
            "labor_rate": "15.0", "electricity_rate": "0.12", "overhead_rate": "150.0"
        }

    @pytest.mark.asyncio
    async def test_falls_back_to_first_route(self, db_session, seed):
        step = await seed.step()
        first = await seed.route("housing", [step])
        await seed.route("housing", [step, step])
        await seed.commit()

        result = await cost_calculation_service.calculate_cost(
            db_session,
            CostCalculationRequest(product_name="外壳", product_category="housing", quantity=100)
        )
        assert result.route_id == first.id

    @pytest.mark.asyncio
    async def test_explicit_route_and_supplied_parameters(self, db_session, seed):
        step = await seed.step(setup_time_minutes="60", cycle_time_seconds="36")
        await seed.route("shaft", [step], is_default=True)
        chosen = await seed.route("shaft", [step], yield_rate="100")
        await seed.commit()

        parameters = CostParameterSnapshot(
            labor_rate=Decimal("20"), electricity_rate=Decimal("0.1"), overhead_rate=Decimal("100")
        )
        result = await cost_calculation_service.calculate_cost(
            db_session,
            CostCalculationRequest(product_name="轴", quantity=100, route_id=chosen.id),
            parameters=parameters
        )

        # 2小时 × 20 = 40，良率100%，管理费100%
        assert result.route_id == chosen.id
        assert result.process_cost == Decimal("40.00")
        assert result.overhead_cost == Decimal("40.00")
        assert result.parameter_snapshot["labor_rate"] == "20"

    @pytest.mark.asyncio
    async def test_custom_route_is_persisted_as_non_default(self, db_session, seed):
        equipment = await seed.equipment()
        step = await seed.step(requires_equipment=True)
        await seed.commit()

        result = await cost_calculation_service.calculate_cost(
            db_session,
            CostCalculationRequest(
                product_name="定制件",
                product_category="custom-part",
                quantity=500,
                custom_route=[
                    CustomRouteStep(
                        process_step_id=step.id,
                        equipment_id=equipment.id,
                        setup_time=Decimal("10"),
                        cycle_time=Decimal("7.2")
                    )
                ]
            )
        )

        route = await db_session.get(ProductProcessRoute, result.route_id)
        assert route.is_default is False
        assert route.route_name == "Custom Route - 定制件"
        assert result.details[0].equipment_id == equipment.id
        assert result.details[0].yield_rate == Decimal("98.0")
        assert result.details[0].setup_time == Decimal("10")

    @pytest.mark.asyncio
    async def test_step_default_equipment_is_used(self, db_session, seed):
        equipment = await seed.equipment()
        step = await seed.step(requires_equipment=True, default_equipment=equipment)
        await seed.route("gear", [step], is_default=True)
        await seed.commit()

        result = await cost_calculation_service.calculate_cost(
            db_session,
            CostCalculationRequest(product_name="齿轮", product_category="gear", quantity=100)
        )
        assert result.details[0].equipment_id == equipment.id
        assert result.details[0].equipment_cost > 0

    @pytest.mark.asyncio
    async def test_no_route_found(self, db_session, seed):
        with pytest.raises(NoRouteFoundError) as exc_info:
            await cost_calculation_service.calculate_cost(
                db_session,
                CostCalculationRequest(product_name="未知", product_category="unknown", quantity=1)
            )
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_no_category_and_no_route(self, db_session):
        with pytest.raises(NoRouteFoundError):
            await cost_calculation_service.calculate_cost(
                db_session, CostCalculationRequest(product_name="未知", quantity=1)
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -5])
    async def test_invalid_quantity(self, db_session, quantity):
        with pytest.raises(InvalidQuantityError):
            await cost_calculation_service.calculate_cost(
                db_session,
                CostCalculationRequest(product_name="支架", product_category="bracket", quantity=quantity)
            )

    @pytest.mark.asyncio
    async def test_missing_equipment_leaves_no_artifacts(self, db_session, seed):
        """自定义路线中需要设备的工序未绑定设备：整体回滚"""
        step = await seed.step(requires_equipment=True)
        await seed.commit()
        step_id = step.id

        with pytest.raises(StepEquipmentMissingError) as exc_info:
            await cost_calculation_service.calculate_cost(
                db_session,
                CostCalculationRequest(
                    product_name="定制件",
                    quantity=10,
                    custom_route=[CustomRouteStep(process_step_id=step_id)]
                )
            )

        assert exc_info.value.details["sequence"] == 1
        assert await count(db_session, ProductProcessRoute) == 0
        assert await count(db_session, CostCalculation) == 0
        assert await count(db_session, CostCalculationDetail) == 0
        assert await count(db_session, DocumentSequence) == 0

    @pytest.mark.asyncio
    async def test_calculation_numbers_are_sequential(self, db_session, seed):
        step = await seed.step()
        await seed.route("bracket", [step], is_default=True)
        await seed.commit()

        request = CostCalculationRequest(product_name="支架", product_category="bracket", quantity=10)
        first = await cost_calculation_service.calculate_cost(db_session, request)
        second = await cost_calculation_service.calculate_cost(db_session, request)

        today = datetime.now().strftime("%Y%m%d")
        assert first.calculation_no == f"CALC-{today}-0001"
        assert second.calculation_no == f"CALC-{today}-0002"


class TestCalculationLifecycle:
    """成本计算状态流转与查询"""

    async def _calculate(self, db_session, seed):
        step = await seed.step()
        await seed.route("bracket", [step], is_default=True)
        await seed.commit()
        return await cost_calculation_service.calculate_cost(
            db_session,
            CostCalculationRequest(
                product_name="支架", product_category="bracket",
                quantity=10000, material_cost=Decimal("100"), inquiry_id=uuid4()
            )
        )

    @pytest.mark.asyncio
    async def test_submit_then_approve(self, db_session, seed):
        calculation = await self._calculate(db_session, seed)
        approver_id = uuid4()

        submitted = await cost_calculation_service.submit_calculation(db_session, calculation.id)
        assert submitted.status == CalculationStatus.SUBMITTED

        approved = await cost_calculation_service.approve_calculation(db_session, calculation.id, approver_id)
        assert approved.status == CalculationStatus.APPROVED
        assert approved.approved_by == approver_id
        assert approved.approved_at is not None

    @pytest.mark.asyncio
    async def test_approve_requires_submitted(self, db_session, seed):
        calculation = await self._calculate(db_session, seed)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await cost_calculation_service.approve_calculation(db_session, calculation.id, uuid4())
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_approved_calculation_cannot_be_resubmitted(self, db_session, seed):
        calculation = await self._calculate(db_session, seed)
        await cost_calculation_service.submit_calculation(db_session, calculation.id)
        await cost_calculation_service.approve_calculation(db_session, calculation.id, uuid4())

        with pytest.raises(InvalidStateTransitionError):
            await cost_calculation_service.submit_calculation(db_session, calculation.id)

    @pytest.mark.asyncio
    async def test_get_and_summary(self, db_session, seed):
        calculation = await self._calculate(db_session, seed)

        loaded = await cost_calculation_service.get_calculation(db_session, calculation.id)
        assert loaded.calculation_no == calculation.calculation_no
        assert len(loaded.details) == 1

        summary = await cost_calculation_service.get_cost_summary(db_session, calculation.id)
        assert summary.suggested_price == Decimal("929.11")
        assert summary.process_breakdown[0].process_name.startswith("工序")
        assert summary.process_breakdown[0].total_cost == Decimal("220.15")

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, db_session, seed):
        calculation = await self._calculate(db_session, seed)

        drafts = await cost_calculation_service.list_calculations(db_session, status=CalculationStatus.DRAFT)
        assert drafts.total == 1
        assert drafts.data[0].id == calculation.id

        approved = await cost_calculation_service.list_calculations(db_session, status=CalculationStatus.APPROVED)
        assert approved.total == 0

    @pytest.mark.asyncio
    async def test_unknown_calculation(self, db_session):
        with pytest.raises(NotFoundException):
            await cost_calculation_service.get_calculation(db_session, uuid4())
