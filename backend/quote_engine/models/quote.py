"""
报价单数据模型
"""
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint, Uuid
)

from quote_engine.core.database import Base
from quote_engine.models.enums import (
    ActivityType, ApprovalStatus, ApproverRole, QuoteStatus, SendStatus
)
from quote_engine.models.types import JSONType, StatusEnum


class Quote(Base):
    """报价单主表"""
    __tablename__ = "quotes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="报价单ID")
    quote_no = Column(String(50), unique=True, nullable=False, comment="报价单编号")
    inquiry_id = Column(Uuid, nullable=False, comment="询价单")
    customer_id = Column(Uuid, nullable=False, comment="客户")
    status = Column(StatusEnum(QuoteStatus), nullable=False, default=QuoteStatus.DRAFT, comment="状态")
    validity_days = Column(Integer, comment="有效天数")
    valid_until = Column(DateTime(timezone=True), comment="报价有效期")
    payment_terms = Column(String(255), comment="付款条件")
    delivery_terms = Column(String(255), comment="交货条件")
    remarks = Column(Text, comment="备注信息")
    currency = Column(String(10), nullable=False, default="USD", comment="币种")
    total_amount = Column(Numeric(15, 2), nullable=False, default=0, comment="报价总金额")
    approved_amount = Column(Numeric(15, 2), comment="审批通过时冻结的金额")
    approved_by = Column(Uuid, comment="最终审批人")
    approved_at = Column(DateTime(timezone=True), comment="审批通过时间")
    current_version_id = Column(Uuid, comment="当前版本")
    created_by = Column(Uuid, nullable=False, comment="创建人")
    updated_by = Column(Uuid, comment="最后修改人")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), default=datetime.now, onupdate=datetime.now, comment="更新时间")

    __table_args__ = (
        Index("ix_quote_customer", "customer_id"),
        Index("ix_quote_inquiry", "inquiry_id"),
        Index("ix_quote_status", "status"),
        Index("ix_quote_created_at", "created_at"),
        {"comment": "报价单主表"}
    )


class QuoteVersion(Base):
    """报价单版本（被取代后不可变）"""
    __tablename__ = "quote_versions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="版本ID")
    quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, comment="所属报价单")
    version_number = Column(Integer, nullable=False, comment="版本号")
    version_notes = Column(Text, comment="版本说明")
    is_current = Column(Boolean, nullable=False, default=False, comment="是否当前版本")
    created_by = Column(Uuid, nullable=False, comment="创建人")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")

    __table_args__ = (
        UniqueConstraint("quote_id", "version_number", name="uq_quote_version_number"),
        Index("ix_version_quote", "quote_id"),
    )


class QuoteItem(Base):
    """报价明细"""
    __tablename__ = "quote_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="明细ID")
    quote_version_id = Column(Uuid, ForeignKey("quote_versions.id", ondelete="CASCADE"), nullable=False, comment="所属版本")
    item_no = Column(Integer, nullable=False, comment="项次")
    product_name = Column(String(200), nullable=False, comment="产品名称")
    product_specs = Column(Text, comment="产品规格")
    quantity = Column(Integer, nullable=False, comment="数量")
    unit = Column(String(20), nullable=False, comment="单位")
    unit_price = Column(Numeric(15, 4), nullable=False, comment="单价")
    total_price = Column(Numeric(15, 2), nullable=False, comment="小计")
    cost_calculation_id = Column(Uuid, ForeignKey("cost_calculations.id"), comment="关联成本计算")
    notes = Column(Text, comment="备注")

    __table_args__ = (
        Index("ix_item_version", "quote_version_id", "item_no"),
    )


class QuoteTerm(Base):
    """报价条款"""
    __tablename__ = "quote_terms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="条款ID")
    quote_version_id = Column(Uuid, ForeignKey("quote_versions.id", ondelete="CASCADE"), nullable=False, comment="所属版本")
    term_type = Column(String(50), nullable=False, comment="条款类型")
    term_content = Column(Text, nullable=False, comment="条款内容")
    sort_order = Column(Integer, nullable=False, default=0, comment="排序")

    __table_args__ = (
        Index("ix_term_version", "quote_version_id", "sort_order"),
    )


class QuoteTermsTemplate(Base):
    """条款模板"""
    __tablename__ = "quote_terms_templates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="模板ID")
    template_name = Column(String(100), nullable=False, comment="模板名称")
    template_type = Column(String(50), nullable=False, comment="条款类型")
    content = Column(Text, nullable=False, comment="条款内容")
    language = Column(String(10), default="zh-TW", comment="语言")
    is_default = Column(Boolean, nullable=False, default=False, comment="是否默认")
    is_active = Column(Boolean, nullable=False, default=True, comment="是否启用")


class QuoteApproval(Base):
    """审批记录（每个审批层级一行）"""
    __tablename__ = "quote_approvals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="审批ID")
    quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, comment="报价单")
    quote_version_id = Column(Uuid, ForeignKey("quote_versions.id"), nullable=False, comment="提交时的版本")
    submission_round = Column(Integer, nullable=False, default=1, comment="提交轮次")
    approval_level = Column(Integer, nullable=False, comment="审批层级")
    approver_role = Column(StatusEnum(ApproverRole), nullable=False, comment="审批角色")
    required_approver_id = Column(Uuid, comment="指定审批人")
    actual_approver_id = Column(Uuid, comment="实际审批人")
    approval_status = Column(StatusEnum(ApprovalStatus, 20), nullable=False, default=ApprovalStatus.PENDING, comment="审批状态")
    approval_notes = Column(Text, comment="审批意见")
    approved_at = Column(DateTime(timezone=True), comment="审批时间")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")

    __table_args__ = (
        UniqueConstraint("quote_id", "submission_round", "approval_level", name="uq_quote_round_level"),
        Index("ix_approval_quote", "quote_id", "submission_round"),
    )


class QuoteActivityLog(Base):
    """报价单活动日志（只追加）"""
    __tablename__ = "quote_activity_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="日志ID")
    quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, comment="报价单")
    quote_version_id = Column(Uuid, comment="版本")
    activity_type = Column(StatusEnum(ActivityType, 20), nullable=False, comment="活动类型")
    activity_description = Column(Text, comment="描述")
    activity_data = Column(JSONType, comment="附加数据")
    performed_by = Column(Uuid, nullable=False, comment="操作人")
    performed_at = Column(DateTime(timezone=True), default=datetime.now, comment="操作时间")

    __table_args__ = (
        Index("ix_activity_quote", "quote_id", "performed_at"),
    )


class QuoteSendLog(Base):
    """报价单发送记录"""
    __tablename__ = "quote_send_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, comment="记录ID")
    quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, comment="报价单")
    quote_version_id = Column(Uuid, nullable=False, comment="发送的版本")
    send_method = Column(String(20), nullable=False, default="email", comment="发送方式")
    recipient_email = Column(String(255), nullable=False, comment="收件人邮箱")
    recipient_name = Column(String(100), comment="收件人")
    cc_emails = Column(JSONType, comment="抄送")
    subject = Column(String(500), comment="主题")
    message = Column(Text, comment="正文")
    send_status = Column(StatusEnum(SendStatus, 20), nullable=False, default=SendStatus.PENDING, comment="发送状态")
    sent_at = Column(DateTime(timezone=True), comment="发送时间")
    error_message = Column(Text, comment="失败原因")
    created_by = Column(Uuid, nullable=False, comment="发送人")
    created_at = Column(DateTime(timezone=True), default=datetime.now, comment="创建时间")

    __table_args__ = (
        Index("ix_send_log_quote", "quote_id"),
    )
