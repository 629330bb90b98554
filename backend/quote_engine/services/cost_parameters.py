"""
成本参数服务
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quote_engine.core.config import settings
from quote_engine.models.costing import CostParameter
from quote_engine.schemas.costing import CostParameterSnapshot

LABOR_COST = "labor_cost"
ELECTRICITY_COST = "electricity_cost"
OVERHEAD_RATE = "overhead_rate"


def default_parameter_values() -> Dict[str, Decimal]:
    """参数表缺少记录时的缺省值"""
    return {
        LABOR_COST: Decimal(str(settings.DEFAULT_LABOR_RATE)),
        ELECTRICITY_COST: Decimal(str(settings.DEFAULT_ELECTRICITY_RATE)),
        OVERHEAD_RATE: Decimal(str(settings.DEFAULT_OVERHEAD_RATE)),
    }


def build_snapshot(values: Dict[str, Decimal]) -> CostParameterSnapshot:
    """按缺省值补齐后生成快照"""
    merged = default_parameter_values()
    merged.update({k: Decimal(str(v)) for k, v in values.items() if k in merged})
    return CostParameterSnapshot(
        labor_rate=merged[LABOR_COST],
        electricity_rate=merged[ELECTRICITY_COST],
        overhead_rate=merged[OVERHEAD_RATE],
    )


class CostParameterService:
    """成本参数查询"""

    async def get_current_parameters(
        self,
        db: AsyncSession,
        at: Optional[date] = None
    ) -> CostParameterSnapshot:
        """
        获取指定日期有效的成本参数

        同类型参数有多条有效记录时取生效日期最新的一条；
        缺少的参数类型使用配置中的缺省值。
        """
        at = at or date.today()
        query = select(CostParameter).where(
            CostParameter.effective_date <= at,
            or_(CostParameter.end_date.is_(None), CostParameter.end_date >= at)
        ).order_by(CostParameter.effective_date)
        result = await db.execute(query)
        params: List[CostParameter] = result.scalars().all()

        # 按生效日期升序遍历，后者覆盖前者
        latest: Dict[str, Decimal] = {}
        for param in params:
            latest[param.parameter_type] = param.value

        missing = set(default_parameter_values()) - set(latest)
        if missing:
            logger.debug(f"成本参数缺失，使用缺省值: {sorted(missing)}")

        return build_snapshot(latest)


cost_parameter_service = CostParameterService()
