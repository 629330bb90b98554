"""
单据编号服务

编号按自然日分段：Q-YYYYMMDD-NNNN / CALC-YYYYMMDD-NNNN。
计数器行在调用方事务内加锁递增，事务回滚时编号随之归还，
因此同一天的编号严格递增且无空号。禁止使用 max()+1 / count()+1。
"""
from datetime import date, datetime
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from quote_engine.models.sequence import DocumentSequence

QUOTE_PREFIX = "Q"
CALCULATION_PREFIX = "CALC"


def _insert_for(dialect_name: str):
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"不支持的数据库方言: {dialect_name}")


def format_document_no(prefix: str, day: date, value: int) -> str:
    return f"{prefix}-{day.strftime('%Y%m%d')}-{value:04d}"


class SequenceService:
    """事务内的编号分配"""

    async def next_value(self, db: AsyncSession, prefix: str, day: date) -> int:
        """
        取得 (prefix, day) 的下一个序号

        1. 计数器行不存在则插入（ON CONFLICT DO NOTHING，并发插入安全）
        2. SELECT ... FOR UPDATE 锁定计数器行
        3. 递增并 flush

        不提交事务，由调用方控制边界。
        """
        insert = _insert_for(db.get_bind().dialect.name)
        await db.execute(
            insert(DocumentSequence)
            .values(prefix=prefix, sequence_date=day, current_value=0)
            .on_conflict_do_nothing(index_elements=["prefix", "sequence_date"])
        )

        counter = (await db.execute(
            select(DocumentSequence)
            .where(
                DocumentSequence.prefix == prefix,
                DocumentSequence.sequence_date == day
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )).scalar_one()

        counter.current_value += 1
        await db.flush()

        logger.debug(f"编号分配: {prefix} {day} -> {counter.current_value}")
        return counter.current_value

    async def next_document_no(
        self,
        db: AsyncSession,
        prefix: str,
        now: Optional[datetime] = None
    ) -> str:
        day = (now or datetime.now()).date()
        value = await self.next_value(db, prefix, day)
        return format_document_no(prefix, day, value)


sequence_service = SequenceService()
