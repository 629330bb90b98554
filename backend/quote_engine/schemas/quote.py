"""
报价单相关的Pydantic模式
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from quote_engine.models.enums import (
    ActivityType, ApprovalStatus, ApproverRole, QuoteStatus, SendStatus
)


# ===== 请求 Schema =====
class QuoteItemRequest(BaseModel):
    """报价项"""
    product_name: str = Field(..., min_length=1, max_length=200, description="产品名称")
    product_specs: Optional[str] = Field(None, description="产品规格")
    quantity: int = Field(..., ge=1, description="数量")
    unit: str = Field(..., min_length=1, max_length=20, description="单位")
    unit_price: Decimal = Field(..., ge=0, decimal_places=4, description="单价")
    cost_calculation_id: Optional[UUID] = Field(None, description="关联成本计算")
    notes: Optional[str] = Field(None, description="备注")


class QuoteTermRequest(BaseModel):
    """报价条款"""
    term_type: str = Field(..., min_length=1, max_length=50, description="条款类型")
    term_content: str = Field(..., min_length=1, description="条款内容")
    sort_order: int = Field(default=0, description="排序")


class CreateQuoteRequest(BaseModel):
    """创建报价单请求"""
    inquiry_id: UUID = Field(..., description="询价单")
    customer_id: UUID = Field(..., description="客户")
    validity_days: int = Field(default=30, ge=0, description="有效期天数")
    payment_terms: Optional[str] = Field(None, max_length=255, description="付款条件")
    delivery_terms: Optional[str] = Field(None, max_length=255, description="交货条件")
    remarks: Optional[str] = Field(None, description="备注信息")
    currency: Optional[str] = Field(None, max_length=10, description="币种")
    items: List[QuoteItemRequest] = Field(..., description="报价项")
    terms: List[QuoteTermRequest] = Field(default_factory=list, description="自定义条款")
    use_template: bool = Field(default=False, description="未提供条款时是否套用默认条款模板")


class UpdateQuoteRequest(BaseModel):
    """更新报价单请求（只更新显式提供的字段）"""
    create_new_version: bool = Field(default=False, description="是否创建新版本")
    version_notes: Optional[str] = Field(None, description="版本说明")
    validity_days: Optional[int] = Field(None, ge=0, description="有效期天数")
    payment_terms: Optional[str] = Field(None, max_length=255, description="付款条件")
    delivery_terms: Optional[str] = Field(None, max_length=255, description="交货条件")
    remarks: Optional[str] = Field(None, description="备注信息")
    items: Optional[List[QuoteItemRequest]] = Field(None, description="替换全部报价项")
    terms: Optional[List[QuoteTermRequest]] = Field(None, description="替换全部条款")


class SubmitApprovalRequest(BaseModel):
    """提交审批请求"""
    notes: Optional[str] = Field(None, description="提交说明")


class ApproveQuoteRequest(BaseModel):
    """审批请求"""
    approved: bool = Field(..., description="通过/驳回")
    notes: Optional[str] = Field(None, description="审批意见")


class SendQuoteRequest(BaseModel):
    """发送报价单请求"""
    recipient_email: EmailStr = Field(..., description="收件人邮箱")
    recipient_name: Optional[str] = Field(None, max_length=100, description="收件人")
    cc_emails: List[EmailStr] = Field(default_factory=list, description="抄送")
    subject: Optional[str] = Field(None, max_length=500, description="主题")
    message: Optional[str] = Field(None, description="正文")
    attach_pdf: bool = Field(default=True, description="是否附带PDF")


# ===== 响应 Schema =====
class QuoteItemResponse(BaseModel):
    """报价项响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="明细ID")
    item_no: int = Field(..., description="项次")
    product_name: str = Field(..., description="产品名称")
    product_specs: Optional[str] = Field(None, description="产品规格")
    quantity: int = Field(..., description="数量")
    unit: str = Field(..., description="单位")
    unit_price: Decimal = Field(..., description="单价")
    total_price: Decimal = Field(..., description="小计")
    cost_calculation_id: Optional[UUID] = Field(None, description="关联成本计算")
    notes: Optional[str] = Field(None, description="备注")


class QuoteTermResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    term_type: str
    term_content: str
    sort_order: int


class QuoteApprovalResponse(BaseModel):
    """审批记录响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    submission_round: int = Field(..., description="提交轮次")
    approval_level: int = Field(..., description="审批层级")
    approver_role: ApproverRole = Field(..., description="审批角色")
    approval_status: ApprovalStatus = Field(..., description="审批状态")
    actual_approver_id: Optional[UUID] = None
    approval_notes: Optional[str] = None
    approved_at: Optional[datetime] = None


class QuoteVersionResponse(BaseModel):
    """版本响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="版本ID")
    version_number: int = Field(..., description="版本号")
    version_notes: Optional[str] = Field(None, description="版本说明")
    is_current: bool = Field(..., description="是否当前版本")
    created_by: UUID = Field(..., description="创建人")
    created_at: datetime = Field(..., description="创建时间")


class QuoteDetailResponse(BaseModel):
    """报价单详情响应"""
    id: UUID = Field(..., description="报价单ID")
    quote_no: str = Field(..., description="报价单编号")
    inquiry_id: UUID = Field(..., description="询价单")
    customer_id: UUID = Field(..., description="客户")
    status: QuoteStatus = Field(..., description="状态")
    validity_days: Optional[int] = Field(None, description="有效天数")
    valid_until: Optional[datetime] = Field(None, description="有效期")
    payment_terms: Optional[str] = Field(None, description="付款条件")
    delivery_terms: Optional[str] = Field(None, description="交货条件")
    remarks: Optional[str] = Field(None, description="备注信息")
    currency: str = Field(..., description="币种")
    total_amount: Decimal = Field(..., description="报价总金额")
    approved_amount: Optional[Decimal] = Field(None, description="审批通过金额")
    approved_by: Optional[UUID] = Field(None, description="最终审批人")
    approved_at: Optional[datetime] = Field(None, description="审批通过时间")
    created_by: UUID = Field(..., description="创建人")
    updated_by: Optional[UUID] = Field(None, description="最后修改人")
    created_at: datetime = Field(..., description="创建时间")
    updated_at: datetime = Field(..., description="更新时间")
    current_version: QuoteVersionResponse = Field(..., description="当前版本")
    items: List[QuoteItemResponse] = Field(default_factory=list, description="报价项列表")
    terms: List[QuoteTermResponse] = Field(default_factory=list, description="条款列表")
    approvals: List[QuoteApprovalResponse] = Field(default_factory=list, description="最近一轮审批")


class QuoteListResponse(BaseModel):
    """报价单列表项响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="报价单ID")
    quote_no: str = Field(..., description="报价单编号")
    customer_id: UUID = Field(..., description="客户")
    status: QuoteStatus = Field(..., description="状态")
    total_amount: Decimal = Field(..., description="报价总金额")
    created_by: UUID = Field(..., description="创建人")
    created_at: datetime = Field(..., description="创建时间")
    updated_at: datetime = Field(..., description="更新时间")


class PaginatedQuoteListResponse(BaseModel):
    """分页报价单列表响应"""
    total: int = Field(..., description="总记录数")
    page: int = Field(..., description="当前页码")
    page_size: int = Field(..., description="每页大小")
    data: List[QuoteListResponse] = Field(..., description="数据列表")


class QuoteActivityLogResponse(BaseModel):
    """活动日志响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    quote_version_id: Optional[UUID] = None
    activity_type: ActivityType
    activity_description: Optional[str] = None
    performed_by: UUID
    performed_at: datetime


class QuoteSendLogResponse(BaseModel):
    """发送记录响应"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    quote_version_id: UUID
    recipient_email: str
    send_status: SendStatus
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: datetime


class SendQuoteResult(BaseModel):
    """发送结果（邮件失败不视为异常）"""
    quote_id: UUID
    quote_status: QuoteStatus
    send_log_id: UUID
    send_status: SendStatus
    error_message: Optional[str] = None
