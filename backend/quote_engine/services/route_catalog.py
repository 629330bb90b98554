"""
工艺路线目录
路线查询、工序与设备主档查询、自定义路线创建
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from quote_engine.core.config import settings
from quote_engine.core.exceptions import NoRouteFoundError, NotFoundException
from quote_engine.models.costing import (
    Equipment, ProcessRouteDetail, ProcessStep, ProductProcessRoute
)
from quote_engine.schemas.costing import (
    CostCalculationRequest, ProcessRouteResponse, RouteDetailResponse
)


@dataclass
class LoadedRoute:
    """路线及其按顺序排列的明细"""
    route: ProductProcessRoute
    details: List[ProcessRouteDetail]

    def to_response(self) -> ProcessRouteResponse:
        response = ProcessRouteResponse.model_validate(self.route)
        response.details = [RouteDetailResponse.model_validate(d) for d in self.details]
        return response


class RouteCatalog:
    """工艺路线目录服务"""

    async def get_route(self, db: AsyncSession, route_id: UUID) -> LoadedRoute:
        """获取路线及明细"""
        route = await db.get(ProductProcessRoute, route_id)
        if not route:
            raise NotFoundException("工艺路线", str(route_id))

        details_query = select(ProcessRouteDetail).where(
            ProcessRouteDetail.route_id == route_id
        ).order_by(ProcessRouteDetail.sequence)
        details_result = await db.execute(details_query)

        return LoadedRoute(route=route, details=list(details_result.scalars().all()))

    async def list_routes(
        self,
        db: AsyncSession,
        product_category: Optional[str] = None
    ) -> List[ProductProcessRoute]:
        """获取产品类别下的启用路线，默认路线在前"""
        query = select(ProductProcessRoute).where(ProductProcessRoute.is_active.is_(True))
        if product_category:
            query = query.where(ProductProcessRoute.product_category == product_category)
        query = query.order_by(desc(ProductProcessRoute.is_default), ProductProcessRoute.created_at)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_process_steps(self, db: AsyncSession) -> List[ProcessStep]:
        query = select(ProcessStep).where(
            ProcessStep.is_active.is_(True)
        ).order_by(ProcessStep.sort_order, ProcessStep.code)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_equipment(
        self,
        db: AsyncSession,
        process_category_id: Optional[UUID] = None
    ) -> List[Equipment]:
        query = select(Equipment).where(Equipment.is_active.is_(True))
        if process_category_id:
            query = query.where(Equipment.process_category_id == process_category_id)
        result = await db.execute(query.order_by(Equipment.code))
        return list(result.scalars().all())

    async def get_process_step(self, db: AsyncSession, step_id: UUID) -> ProcessStep:
        step = await db.get(ProcessStep, step_id)
        if not step:
            raise NotFoundException("工序", str(step_id))
        return step

    async def get_equipment(self, db: AsyncSession, equipment_id: UUID) -> Equipment:
        equipment = await db.get(Equipment, equipment_id)
        if not equipment:
            raise NotFoundException("设备", str(equipment_id))
        return equipment

    async def create_custom_route(
        self,
        db: AsyncSession,
        request: CostCalculationRequest
    ) -> LoadedRoute:
        """
        根据请求中的自定义工序创建非默认路线

        只 flush 不提交，与成本计算处于同一事务。
        """
        route = ProductProcessRoute(
            product_category=request.product_category or "custom",
            material_type=request.material_type,
            size_range=request.size_range,
            route_name=f"Custom Route - {request.product_name}",
            is_default=False,
            is_active=True
        )
        db.add(route)
        await db.flush()

        details = []
        for sequence, step in enumerate(request.custom_route, 1):
            # 工序必须存在
            await self.get_process_step(db, step.process_step_id)
            detail = ProcessRouteDetail(
                route_id=route.id,
                sequence=sequence,
                process_step_id=step.process_step_id,
                equipment_id=step.equipment_id,
                setup_time_override=step.setup_time,
                cycle_time_override=step.cycle_time,
                yield_rate=step.yield_rate if step.yield_rate is not None
                else Decimal(str(settings.DEFAULT_YIELD_RATE))
            )
            db.add(detail)
            details.append(detail)
        await db.flush()

        logger.info(f"创建自定义工艺路线: {route.route_name}, 共{len(details)}道工序")
        return LoadedRoute(route=route, details=details)

    async def resolve_route(
        self,
        db: AsyncSession,
        request: CostCalculationRequest
    ) -> LoadedRoute:
        """
        确定本次计算使用的路线

        优先级：指定路线ID > 自定义路线 > 类别默认路线 > 类别下第一条路线
        """
        if request.route_id:
            return await self.get_route(db, request.route_id)

        if request.custom_route:
            return await self.create_custom_route(db, request)

        routes = await self.list_routes(db, request.product_category)
        if request.product_category is None or not routes:
            raise NoRouteFoundError(request.product_category)

        for route in routes:
            if route.is_default:
                return await self.get_route(db, route.id)

        # 没有默认路线，使用第一条
        return await self.get_route(db, routes[0].id)


route_catalog = RouteCatalog()
