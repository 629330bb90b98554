"""
测试配置
每个测试使用独立的内存SQLite数据库
"""
from decimal import Decimal
from typing import List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import quote_engine.models  # noqa: F401  注册全部模型
from quote_engine.core.database import Base
from quote_engine.models.costing import (
    CostParameter, Equipment, ProcessRouteDetail, ProcessStep, ProductProcessRoute
)
from quote_engine.models.quote import QuoteTermsTemplate

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def db_session():
    """创建测试数据库会话，测试结束后销毁数据库"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture(scope="function")
async def session_factory(tmp_path):
    """基于文件的SQLite数据库，每个会话独立连接，用于并发测试"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}",
        echo=False,
        connect_args={"timeout": 30}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


class SeedFactory:
    """测试基础数据"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._counter = 0

    def _next_code(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter:03d}"

    async def equipment(
        self,
        purchase_cost: str = "200000",
        depreciation_years: int = 10,
        maintenance_cost_per_year: str = "4000",
        power_consumption: str = "10"
    ) -> Equipment:
        equipment = Equipment(
            code=self._next_code("EQ"),
            name=f"设备{self._counter}",
            purchase_cost=Decimal(purchase_cost),
            depreciation_years=depreciation_years,
            maintenance_cost_per_year=Decimal(maintenance_cost_per_year),
            power_consumption=Decimal(power_consumption)
        )
        self.db.add(equipment)
        await self.db.flush()
        return equipment

    async def step(
        self,
        setup_time_minutes: str = "30",
        cycle_time_seconds: str = "5",
        labor_required: int = 1,
        requires_equipment: bool = False,
        default_equipment: Optional[Equipment] = None
    ) -> ProcessStep:
        step = ProcessStep(
            code=self._next_code("STEP"),
            name=f"工序{self._counter}",
            setup_time_minutes=Decimal(setup_time_minutes),
            cycle_time_seconds=Decimal(cycle_time_seconds),
            labor_required=labor_required,
            requires_equipment=requires_equipment,
            default_equipment_id=default_equipment.id if default_equipment else None
        )
        self.db.add(step)
        await self.db.flush()
        return step

    async def route(
        self,
        product_category: str,
        steps: List[ProcessStep],
        is_default: bool = False,
        yield_rate: str = "98",
        route_name: Optional[str] = None
    ) -> ProductProcessRoute:
        route = ProductProcessRoute(
            product_category=product_category,
            route_name=route_name or f"{product_category} 路线",
            is_default=is_default
        )
        self.db.add(route)
        await self.db.flush()
        for sequence, step in enumerate(steps, 1):
            self.db.add(ProcessRouteDetail(
                route_id=route.id,
                sequence=sequence,
                process_step_id=step.id,
                yield_rate=Decimal(yield_rate)
            ))
        await self.db.flush()
        return route

    async def parameter(self, parameter_type: str, value: str, effective_date, end_date=None) -> CostParameter:
        param = CostParameter(
            parameter_type=parameter_type,
            parameter_name=parameter_type,
            value=Decimal(value),
            effective_date=effective_date,
            end_date=end_date
        )
        self.db.add(param)
        await self.db.flush()
        return param

    async def terms_template(self, template_type: str, content: str, is_default: bool = True) -> QuoteTermsTemplate:
        template = QuoteTermsTemplate(
            template_name=f"{template_type} 模板",
            template_type=template_type,
            content=content,
            is_default=is_default
        )
        self.db.add(template)
        await self.db.flush()
        return template

    async def commit(self):
        await self.db.commit()


@pytest.fixture
def seed(db_session: AsyncSession) -> SeedFactory:
    """测试数据工厂"""
    return SeedFactory(db_session)
