"""
成本核算相关的Pydantic模式
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from quote_engine.models.enums import CalculationStatus


class CostParameterSnapshot(BaseModel):
    """
    一次计算所使用的成本参数快照

    计算开始时一次性取得并随计算结果保存，保证结果可复现。
    overhead_rate 为百分比（150 表示 150%）。
    """
    model_config = ConfigDict(frozen=True)

    labor_rate: Decimal = Field(..., description="人工费率(每小时)")
    electricity_rate: Decimal = Field(..., description="电价(每kWh)")
    overhead_rate: Decimal = Field(..., description="管理费率(%)")


class CustomRouteStep(BaseModel):
    """自定义工艺路线中的一道工序"""
    process_step_id: UUID = Field(..., description="工序ID")
    equipment_id: Optional[UUID] = Field(None, description="设备ID")
    setup_time: Optional[Decimal] = Field(None, gt=0, description="准备时间覆盖值(分钟)")
    cycle_time: Optional[Decimal] = Field(None, gt=0, description="节拍覆盖值(秒)")
    yield_rate: Optional[Decimal] = Field(None, gt=0, le=100, description="良率(%)")


class CostCalculationRequest(BaseModel):
    """成本计算请求"""
    inquiry_id: Optional[UUID] = Field(None, description="询价单ID")
    product_name: str = Field(..., min_length=1, max_length=200, description="产品名称")
    product_category: Optional[str] = Field(None, max_length=50, description="产品类别")
    material_type: Optional[str] = Field(None, max_length=50, description="材质")
    size_range: Optional[str] = Field(None, max_length=50, description="规格范围")
    # 数量在服务层校验，以便返回 INVALID_QUANTITY
    quantity: int = Field(..., description="数量")
    material_cost: Decimal = Field(default=Decimal("0"), ge=0, description="材料成本")
    route_id: Optional[UUID] = Field(None, description="指定工艺路线")
    custom_route: List[CustomRouteStep] = Field(default_factory=list, description="自定义工艺路线")
    margin_percentage: Optional[Decimal] = Field(None, description="毛利率(%)，缺省30")
    calculated_by: Optional[UUID] = Field(None, description="计算人")


class CostCalculationDetailResponse(BaseModel):
    """成本计算明细响应"""
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    process_step_id: UUID
    equipment_id: Optional[UUID] = None
    setup_time: Decimal
    cycle_time: Decimal
    yield_rate: Decimal
    total_time_hours: Decimal
    labor_cost: Decimal
    equipment_cost: Decimal
    electricity_cost: Decimal
    subtotal_cost: Decimal
    yield_loss_cost: Decimal


class CostCalculationResponse(BaseModel):
    """成本计算响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="计算ID")
    calculation_no: str = Field(..., description="计算编号")
    inquiry_id: Optional[UUID] = Field(None, description="询价单")
    product_name: str = Field(..., description="产品名称")
    quantity: int = Field(..., description="数量")
    material_cost: Decimal = Field(..., description="材料成本")
    process_cost: Decimal = Field(..., description="加工成本")
    overhead_cost: Decimal = Field(..., description="管理费用")
    total_cost: Decimal = Field(..., description="总成本")
    unit_cost: Decimal = Field(..., description="单位成本")
    margin_percentage: Decimal = Field(..., description="毛利率")
    selling_price: Decimal = Field(..., description="建议售价")
    route_id: Optional[UUID] = Field(None, description="工艺路线")
    parameter_snapshot: Optional[dict] = Field(None, description="成本参数快照")
    status: CalculationStatus = Field(..., description="状态")
    calculated_by: Optional[UUID] = None
    calculated_at: Optional[datetime] = None
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    details: List[CostCalculationDetailResponse] = Field(default_factory=list, description="工序明细")


class ProcessCostBreakdown(BaseModel):
    """单道工序成本拆分"""
    sequence: int
    process_name: str
    equipment_name: Optional[str] = None
    total_time_hours: Decimal
    labor_cost: Decimal
    equipment_cost: Decimal
    electricity_cost: Decimal
    total_cost: Decimal = Field(..., description="小计 + 良率损失")


class CostSummaryResponse(BaseModel):
    """成本摘要"""
    calculation_no: str
    material_cost: Decimal
    process_cost: Decimal
    overhead_cost: Decimal
    total_cost: Decimal
    unit_cost: Decimal
    suggested_price: Decimal
    margin_percentage: Decimal
    process_breakdown: List[ProcessCostBreakdown] = Field(default_factory=list)


class PaginatedCalculationListResponse(BaseModel):
    """分页成本计算列表"""
    total: int = Field(..., description="总记录数")
    page: int = Field(..., description="当前页码")
    page_size: int = Field(..., description="每页大小")
    data: List[CostCalculationResponse] = Field(..., description="数据列表")


class RouteDetailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    process_step_id: UUID
    equipment_id: Optional[UUID] = None
    setup_time_override: Optional[Decimal] = None
    cycle_time_override: Optional[Decimal] = None
    yield_rate: Decimal


class ProcessRouteResponse(BaseModel):
    """工艺路线响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_category: str
    material_type: Optional[str] = None
    size_range: Optional[str] = None
    route_name: str
    is_default: bool
    is_active: bool
    details: List[RouteDetailResponse] = Field(default_factory=list)
