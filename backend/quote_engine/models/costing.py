"""
成本核算数据模型
设备、工序、成本参数、工艺路线、成本计算
"""
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
)

from quote_engine.core.database import Base
from quote_engine.models.enums import CalculationStatus
from quote_engine.models.types import JSONType, StatusEnum


class ProcessCategory(Base):
    """工序类别"""
    __tablename__ = "process_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="类别ID")
    code = Column(String(20), unique=True, nullable=False, comment="类别代码")
    name = Column(String(100), nullable=False, comment="类别名称")
    description = Column(Text, comment="描述")
    sort_order = Column(Integer, nullable=False, default=0, comment="排序")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否启用")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")


class Equipment(Base):
    """设备主档"""
    __tablename__ = "equipment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="设备ID")
    code = Column(String(50), unique=True, nullable=False, comment="设备代码")
    name = Column(String(100), nullable=False, comment="设备名称")
    process_category_id = Column(Uuid, ForeignKey("process_categories.id"), comment="工序类别")
    power_consumption = Column(Numeric(10, 2), nullable=False, default=0, comment="功率(kW)")
    depreciation_years = Column(Integer, nullable=False, default=10, comment="折旧年限")
    purchase_cost = Column(Numeric(15, 2), nullable=False, default=0, comment="购置成本")
    maintenance_cost_per_year = Column(Numeric(15, 2), nullable=False, default=0, comment="年维护费用")
    location = Column(String(100), comment="位置")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否启用")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")

    __table_args__ = (
        Index("ix_equipment_category", "process_category_id"),
    )


class ProcessStep(Base):
    """工序"""
    __tablename__ = "process_steps"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="工序ID")
    code = Column(String(50), unique=True, nullable=False, comment="工序代码")
    name = Column(String(100), nullable=False, comment="工序名称")
    process_category_id = Column(Uuid, ForeignKey("process_categories.id"), comment="工序类别")
    default_equipment_id = Column(Uuid, ForeignKey("equipment.id"), comment="默认设备")
    requires_equipment = Column(Boolean, nullable=False, default=False, comment="是否必须绑定设备")
    setup_time_minutes = Column(Numeric(10, 2), nullable=False, default=0, comment="准备时间(分钟)")
    cycle_time_seconds = Column(Numeric(10, 2), nullable=False, default=0, comment="单件节拍(秒)")
    labor_required = Column(Integer, nullable=False, default=1, comment="所需人数")
    description = Column(Text, comment="描述")
    sort_order = Column(Integer, nullable=False, default=0, comment="排序")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否启用")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")


class CostParameter(Base):
    """成本参数（按生效区间取值）"""
    __tablename__ = "cost_parameters"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="参数ID")
    parameter_type = Column(String(50), nullable=False, comment="参数类型")
    parameter_name = Column(String(100), nullable=False, comment="参数名称")
    value = Column(Numeric(15, 4), nullable=False, comment="参数值")
    unit = Column(String(20), comment="单位")
    effective_date = Column(Date, nullable=False, comment="生效日期")
    end_date = Column(Date, comment="失效日期")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")

    __table_args__ = (
        Index("ix_cost_param_type_effective", "parameter_type", "effective_date"),
    )


class ProductProcessRoute(Base):
    """产品工艺路线"""
    __tablename__ = "product_process_routes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="路线ID")
    product_category = Column(String(50), nullable=False, comment="产品类别")
    material_type = Column(String(50), comment="材质")
    size_range = Column(String(50), comment="规格范围")
    route_name = Column(String(100), nullable=False, comment="路线名称")
    is_default = Column(Boolean, nullable=False, default=False, comment="是否默认路线")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否启用")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")

    __table_args__ = (
        Index("ix_route_category", "product_category"),
    )


class ProcessRouteDetail(Base):
    """工艺路线明细（一行一道工序）"""
    __tablename__ = "process_route_details"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="明细ID")
    route_id = Column(Uuid, ForeignKey("product_process_routes.id", ondelete="CASCADE"), nullable=False, comment="所属路线")
    sequence = Column(Integer, nullable=False, comment="工序顺序")
    process_step_id = Column(Uuid, ForeignKey("process_steps.id"), nullable=False, comment="工序")
    equipment_id = Column(Uuid, ForeignKey("equipment.id"), comment="指定设备")
    setup_time_override = Column(Numeric(10, 2), comment="准备时间覆盖值(分钟)")
    cycle_time_override = Column(Numeric(10, 2), comment="节拍覆盖值(秒)")
    yield_rate = Column(Numeric(5, 2), nullable=False, default=98, comment="良率(%)")
    notes = Column(Text, comment="备注")

    __table_args__ = (
        Index("ix_route_detail_route", "route_id", "sequence"),
    )


class CostCalculation(Base):
    """成本计算主档"""
    __tablename__ = "cost_calculations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="计算ID")
    calculation_no = Column(String(50), unique=True, nullable=False, comment="计算编号")
    inquiry_id = Column(Uuid, comment="询价单")
    product_name = Column(String(200), nullable=False, comment="产品名称")
    quantity = Column(Integer, nullable=False, comment="数量")
    material_cost = Column(Numeric(15, 4), nullable=False, default=0, comment="材料成本")
    process_cost = Column(Numeric(15, 4), nullable=False, default=0, comment="加工成本")
    overhead_cost = Column(Numeric(15, 4), nullable=False, default=0, comment="管理费用")
    total_cost = Column(Numeric(15, 4), nullable=False, default=0, comment="总成本")
    unit_cost = Column(Numeric(15, 6), nullable=False, default=0, comment="单位成本")
    margin_percentage = Column(Numeric(5, 2), nullable=False, comment="毛利率(%)")
    selling_price = Column(Numeric(15, 4), nullable=False, default=0, comment="建议售价")
    route_id = Column(Uuid, ForeignKey("product_process_routes.id"), comment="工艺路线")
    parameter_snapshot = Column(JSONType, comment="计算时的成本参数快照")
    status = Column(StatusEnum(CalculationStatus, 20), nullable=False, default=CalculationStatus.DRAFT, comment="状态")
    calculated_by = Column(Uuid, comment="计算人")
    calculated_at = Column(DateTime(timezone=True), default=datetime.now, comment="计算时间")
    approved_by = Column(Uuid, comment="审核人")
    approved_at = Column(DateTime(timezone=True), comment="审核时间")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), default=datetime.now, onupdate=datetime.now, comment="更新时间")

    __table_args__ = (
        Index("ix_calc_inquiry", "inquiry_id"),
        Index("ix_calc_status", "status"),
        {"comment": "成本计算主档"}
    )


class CostCalculationDetail(Base):
    """成本计算明细（每道工序一行）"""
    __tablename__ = "cost_calculation_details"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="明细ID")
    calculation_id = Column(Uuid, ForeignKey("cost_calculations.id", ondelete="CASCADE"), nullable=False, comment="所属计算")
    sequence = Column(Integer, nullable=False, comment="工序顺序")
    process_step_id = Column(Uuid, ForeignKey("process_steps.id"), nullable=False, comment="工序")
    equipment_id = Column(Uuid, ForeignKey("equipment.id"), comment="设备")
    setup_time = Column(Numeric(10, 2), nullable=False, comment="准备时间(分钟)")
    cycle_time = Column(Numeric(10, 2), nullable=False, comment="节拍(秒)")
    yield_rate = Column(Numeric(5, 2), nullable=False, comment="良率(%)")
    total_time_hours = Column(Numeric(10, 4), nullable=False, comment="总工时(小时)")
    labor_cost = Column(Numeric(15, 4), nullable=False, comment="人工成本")
    equipment_cost = Column(Numeric(15, 4), nullable=False, comment="设备成本")
    electricity_cost = Column(Numeric(15, 4), nullable=False, comment="电费")
    subtotal_cost = Column(Numeric(15, 4), nullable=False, comment="小计")
    yield_loss_cost = Column(Numeric(15, 4), nullable=False, comment="良率损失成本")

    __table_args__ = (
        Index("ix_calc_detail_calc", "calculation_id", "sequence"),
    )
