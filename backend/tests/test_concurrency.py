"""
并发测试
多个会话（独立连接）同时操作同一数据库
"""
import asyncio
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from quote_engine.models.costing import ProcessRouteDetail, ProcessStep, ProductProcessRoute
from quote_engine.models.enums import ApprovalStatus, ApproverRole, QuoteStatus
from quote_engine.schemas.costing import CostCalculationRequest
from quote_engine.schemas.quote import (
    ApproveQuoteRequest, CreateQuoteRequest, QuoteItemRequest, SubmitApprovalRequest
)
from quote_engine.services.cost_calculation_service import cost_calculation_service
from quote_engine.services.quote_service import QuoteService

SALES_USER = uuid4()
ENGINEER_LEAD = uuid4()
SALES_MANAGER = uuid4()
CONCURRENCY = 5


def create_request(quantity=3, unit_price="15000") -> CreateQuoteRequest:
    return CreateQuoteRequest(
        inquiry_id=uuid4(),
        customer_id=uuid4(),
        items=[QuoteItemRequest(
            product_name="精密零件", quantity=quantity, unit="pcs", unit_price=Decimal(unit_price)
        )]
    )


def expected_numbers(prefix: str, count: int):
    today = datetime.now().strftime("%Y%m%d")
    return [f"{prefix}-{today}-{n:04d}" for n in range(1, count + 1)]


class HoldingQuoteService(QuoteService):
    """读取本轮审批记录后暂停一次，直到测试放行"""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self._hold = True

    async def _round_approvals(self, db, quote_id):
        approvals = await super()._round_approvals(db, quote_id)
        if self._hold:
            self._hold = False
            self.entered.set()
            await self.release.wait()
        return approvals


class TestConcurrentNumbering:
    """并发编号无重复、无空号"""

    @pytest.mark.asyncio
    async def test_concurrent_quotes(self, session_factory):
        service = QuoteService()

        async def create():
            async with session_factory() as db:
                quote = await service.create_quote(db, create_request(), SALES_USER)
                return quote.quote_no

        numbers = await asyncio.gather(*[create() for _ in range(CONCURRENCY)])

        assert sorted(numbers) == expected_numbers("Q", CONCURRENCY)

    @pytest.mark.asyncio
    async def test_concurrent_calculations(self, session_factory):
        async with session_factory() as db:
            step = ProcessStep(
                code="STEP-001", name="冲压",
                setup_time_minutes=Decimal("30"), cycle_time_seconds=Decimal("5")
            )
            db.add(step)
            await db.flush()
            route = ProductProcessRoute(product_category="bracket", route_name="支架路线", is_default=True)
            db.add(route)
            await db.flush()
            db.add(ProcessRouteDetail(route_id=route.id, sequence=1, process_step_id=step.id, yield_rate=Decimal("98")))
            await db.commit()

        async def calculate():
            async with session_factory() as db:
                result = await cost_calculation_service.calculate_cost(
                    db,
                    CostCalculationRequest(product_name="支架", product_category="bracket", quantity=100)
                )
                return result.calculation_no

        numbers = await asyncio.gather(*[calculate() for _ in range(CONCURRENCY)])

        assert sorted(numbers) == expected_numbers("CALC", CONCURRENCY)


class TestConcurrentApproval:
    """同一报价单上的并发审批"""

    @pytest.mark.asyncio
    async def test_last_approval_closes_the_round(self, session_factory):
        """工程主管审批进行中，业务经理同时审批：最终报价单必须通过"""
        async with session_factory() as db:
            quote = await QuoteService().create_quote(db, create_request(), SALES_USER)
            await QuoteService().submit_for_approval(db, quote.id, SubmitApprovalRequest(), SALES_USER)
        quote_id = quote.id

        holding = HoldingQuoteService()

        async def approve(service, approver_id, role):
            async with session_factory() as db:
                return await service.approve_quote(
                    db, quote_id, ApproveQuoteRequest(approved=True), approver_id, role
                )

        first = asyncio.create_task(approve(holding, ENGINEER_LEAD, ApproverRole.ENGINEER_LEAD))
        await asyncio.wait_for(holding.entered.wait(), timeout=10)

        second = asyncio.create_task(approve(QuoteService(), SALES_MANAGER, ApproverRole.SALES_MANAGER))
        await asyncio.sleep(0.2)
        holding.release.set()
        await asyncio.gather(first, second)

        async with session_factory() as db:
            detail = await QuoteService().get_quote_detail(db, quote_id)

        assert [a.approval_status for a in detail.approvals] == [
            ApprovalStatus.APPROVED, ApprovalStatus.APPROVED
        ]
        assert detail.status == QuoteStatus.APPROVED
        assert detail.approved_amount == Decimal("45000.00")
