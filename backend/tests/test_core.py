"""
事务边界与日志配置测试
"""
import sys

import pytest
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from quote_engine.core.database import unit_of_work
from quote_engine.core.exceptions import PersistenceException
from quote_engine.core.logging import configure_logging
from quote_engine.models.costing import ProcessCategory


class TestUnitOfWork:
    """事务边界"""

    @pytest.mark.asyncio
    async def test_commit_on_success(self, db_session):
        async with unit_of_work(db_session, "新增工序类别"):
            db_session.add(ProcessCategory(code="CNC", name="数控加工"))

        count = (await db_session.execute(select(func.count()).select_from(ProcessCategory))).scalar()
        assert count == 1

    @pytest.mark.asyncio
    async def test_database_error_is_wrapped(self, db_session):
        with pytest.raises(PersistenceException) as exc_info:
            async with unit_of_work(db_session, "新增工序类别"):
                db_session.add(ProcessCategory(code="CNC", name="数控加工"))
                db_session.add(ProcessCategory(code="CNC", name="重复代码"))
                await db_session.flush()

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, IntegrityError)

        count = (await db_session.execute(select(func.count()).select_from(ProcessCategory))).scalar()
        assert count == 0


class TestLogging:
    """日志配置"""

    def test_file_sinks(self, tmp_path):
        configure_logging(app_name="quote_test", log_dir=str(tmp_path), level="INFO")
        try:
            logger.info("普通日志")
            logger.error("错误日志")
        finally:
            logger.remove()
            logger.add(sys.stderr)

        general = list(tmp_path.glob("quote_test_2*.log"))
        errors = list(tmp_path.glob("quote_test_error_*.log"))
        assert len(general) == 1
        assert len(errors) == 1
        assert "错误日志" in errors[0].read_text(encoding="utf-8")
        assert "普通日志" not in errors[0].read_text(encoding="utf-8")
