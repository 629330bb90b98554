"""
单据编号测试
"""
from datetime import date, datetime

import pytest

from quote_engine.core.database import unit_of_work
from quote_engine.core.exceptions import BusinessException
from quote_engine.services.numbering import (
    CALCULATION_PREFIX, QUOTE_PREFIX, format_document_no, sequence_service
)


class TestDocumentNumbering:
    """按日连续编号"""

    def test_format(self):
        assert format_document_no("Q", date(2024, 3, 5), 7) == "Q-20240305-0007"
        assert format_document_no("CALC", date(2024, 12, 31), 1234) == "CALC-20241231-1234"

    @pytest.mark.asyncio
    async def test_values_increase_without_gaps(self, db_session):
        day = date(2024, 3, 5)
        values = []
        for _ in range(5):
            async with unit_of_work(db_session, "分配编号"):
                values.append(await sequence_service.next_value(db_session, QUOTE_PREFIX, day))
        assert values == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_prefixes_and_days_are_independent(self, db_session):
        async with unit_of_work(db_session, "分配编号"):
            q1 = await sequence_service.next_value(db_session, QUOTE_PREFIX, date(2024, 3, 5))
            c1 = await sequence_service.next_value(db_session, CALCULATION_PREFIX, date(2024, 3, 5))
            q_next_day = await sequence_service.next_value(db_session, QUOTE_PREFIX, date(2024, 3, 6))
            q2 = await sequence_service.next_value(db_session, QUOTE_PREFIX, date(2024, 3, 5))
        assert (q1, c1, q_next_day, q2) == (1, 1, 1, 2)

    @pytest.mark.asyncio
    async def test_rollback_returns_number(self, db_session):
        day = date(2024, 3, 5)
        async with unit_of_work(db_session, "分配编号"):
            assert await sequence_service.next_value(db_session, QUOTE_PREFIX, day) == 1

        with pytest.raises(BusinessException):
            async with unit_of_work(db_session, "分配编号"):
                assert await sequence_service.next_value(db_session, QUOTE_PREFIX, day) == 2
                raise BusinessException("模拟业务失败")

        async with unit_of_work(db_session, "分配编号"):
            assert await sequence_service.next_value(db_session, QUOTE_PREFIX, day) == 2

    @pytest.mark.asyncio
    async def test_document_no_uses_given_day(self, db_session):
        now = datetime(2024, 7, 1, 9, 30)
        async with unit_of_work(db_session, "分配编号"):
            quote_no = await sequence_service.next_document_no(db_session, QUOTE_PREFIX, now)
        assert quote_no == "Q-20240701-0001"
