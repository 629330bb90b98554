"""
基础数据导入脚本
创建数据表并写入缺省成本参数、默认条款模板
可选从 JSON 文件导入工序、设备与工艺路线
"""
import asyncio
import json
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quote_engine.core.config import settings
from quote_engine.core.database import AsyncSessionLocal, init_models
from quote_engine.core.logging import configure_logging
from quote_engine.models.costing import (
    CostParameter, Equipment, ProcessRouteDetail, ProcessStep, ProductProcessRoute
)
from quote_engine.models.quote import QuoteTermsTemplate
from quote_engine.services.cost_parameters import ELECTRICITY_COST, LABOR_COST, OVERHEAD_RATE

DEFAULT_PARAMETERS = [
    (LABOR_COST, "人工费率", settings.DEFAULT_LABOR_RATE, "元/小时"),
    (ELECTRICITY_COST, "电价", settings.DEFAULT_ELECTRICITY_RATE, "元/kWh"),
    (OVERHEAD_RATE, "管理费率", settings.DEFAULT_OVERHEAD_RATE, "%"),
]

DEFAULT_TEMPLATES = [
    ("标准付款条件", "payment", "月结30天，电汇付款"),
    ("标准交货条件", "delivery", "收到订单后4周内交货，FOB"),
    ("报价有效期", "validity", f"本报价自报价日起{settings.DEFAULT_VALIDITY_DAYS}天内有效"),
]


async def import_parameters(session: AsyncSession):
    """写入缺省成本参数（已存在则跳过）"""
    for parameter_type, name, value, unit in DEFAULT_PARAMETERS:
        exists = (await session.execute(
            select(CostParameter).where(CostParameter.parameter_type == parameter_type)
        )).scalars().first()
        if exists:
            logger.info(f"成本参数已存在，跳过: {parameter_type}")
            continue
        session.add(CostParameter(
            parameter_type=parameter_type,
            parameter_name=name,
            value=Decimal(str(value)),
            unit=unit,
            effective_date=date.today()
        ))
        logger.info(f"导入成本参数: {parameter_type} = {value}")


async def import_templates(session: AsyncSession):
    """写入默认条款模板（已存在则跳过）"""
    for name, template_type, content in DEFAULT_TEMPLATES:
        exists = (await session.execute(
            select(QuoteTermsTemplate).where(QuoteTermsTemplate.template_type == template_type)
        )).scalars().first()
        if exists:
            continue
        session.add(QuoteTermsTemplate(
            template_name=name,
            template_type=template_type,
            content=content,
            is_default=True
        ))
        logger.info(f"导入条款模板: {name}")


async def import_routes(session: AsyncSession, data: Dict[str, Any]):
    """
    从 JSON 导入设备、工序与工艺路线

    格式：{"equipment": [...], "process_steps": [...], "routes": [{"steps": [{"code": ...}]}]}
    工序通过 default_equipment 引用设备代码，路线通过 code 引用工序。
    """
    equipment_by_code = {}
    for row in data.get("equipment", []):
        equipment = Equipment(
            code=row["code"],
            name=row["name"],
            purchase_cost=Decimal(str(row.get("purchase_cost", 0))),
            depreciation_years=row.get("depreciation_years", 10),
            maintenance_cost_per_year=Decimal(str(row.get("maintenance_cost_per_year", 0))),
            power_consumption=Decimal(str(row.get("power_consumption", 0))),
            location=row.get("location")
        )
        session.add(equipment)
        equipment_by_code[equipment.code] = equipment
    await session.flush()

    steps_by_code = {}
    for row in data.get("process_steps", []):
        default_equipment = equipment_by_code.get(row.get("default_equipment"))
        step = ProcessStep(
            code=row["code"],
            name=row["name"],
            default_equipment_id=default_equipment.id if default_equipment else None,
            requires_equipment=row.get("requires_equipment", False),
            setup_time_minutes=Decimal(str(row.get("setup_time_minutes", 0))),
            cycle_time_seconds=Decimal(str(row.get("cycle_time_seconds", 0))),
            labor_required=row.get("labor_required", 1),
            sort_order=row.get("sort_order", 0)
        )
        session.add(step)
        steps_by_code[step.code] = step
    await session.flush()

    for row in data.get("routes", []):
        route = ProductProcessRoute(
            product_category=row["product_category"],
            material_type=row.get("material_type"),
            size_range=row.get("size_range"),
            route_name=row["route_name"],
            is_default=row.get("is_default", False)
        )
        session.add(route)
        await session.flush()
        for sequence, step_row in enumerate(row.get("steps", []), 1):
            session.add(ProcessRouteDetail(
                route_id=route.id,
                sequence=sequence,
                process_step_id=steps_by_code[step_row["code"]].id,
                yield_rate=Decimal(str(step_row.get("yield_rate", settings.DEFAULT_YIELD_RATE)))
            ))
        logger.info(f"导入工艺路线: {route.route_name} ({len(row.get('steps', []))}道工序)")


async def main(routes_file: Path = None):
    configure_logging()
    logger.info("创建数据库表...")
    await init_models()

    async with AsyncSessionLocal() as session:
        try:
            await import_parameters(session)
            await import_templates(session)
            if routes_file:
                with open(routes_file, "r", encoding="utf-8") as f:
                    await import_routes(session, json.load(f))
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"数据导入失败: {e}")
            raise

    logger.info("数据导入完成")


if __name__ == "__main__":
    asyncio.run(main(Path(sys.argv[1]) if len(sys.argv) > 1 else None))
