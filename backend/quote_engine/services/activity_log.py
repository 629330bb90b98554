"""
报价单活动日志
"""
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quote_engine.models.enums import ActivityType
from quote_engine.models.quote import QuoteActivityLog


async def log_activity(
    db: AsyncSession,
    quote_id: UUID,
    version_id: Optional[UUID],
    activity_type: ActivityType,
    description: str,
    performed_by: UUID,
    data: Optional[dict] = None
) -> QuoteActivityLog:
    """追加一条活动日志（随调用方事务提交）"""
    entry = QuoteActivityLog(
        quote_id=quote_id,
        quote_version_id=version_id,
        activity_type=activity_type,
        activity_description=description,
        activity_data=data,
        performed_by=performed_by
    )
    db.add(entry)
    return entry
