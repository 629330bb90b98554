"""
状态枚举与状态机流转表
"""
from enum import Enum
from typing import Dict, FrozenSet

from quote_engine.core.exceptions import InvalidStateTransitionError


class CalculationStatus(str, Enum):
    """成本计算状态"""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"


class QuoteStatus(str, Enum):
    """报价单状态"""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    SENT = "sent"


class ApprovalStatus(str, Enum):
    """单级审批状态"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApproverRole(str, Enum):
    """审批角色"""
    ENGINEER_LEAD = "engineer_lead"
    SALES_MANAGER = "sales_manager"
    GENERAL_MANAGER = "general_manager"


class ActivityType(str, Enum):
    """报价单活动类型"""
    CREATED = "created"
    UPDATED = "updated"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    SENT = "sent"


class SendStatus(str, Enum):
    """发送状态"""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


CALCULATION_TRANSITIONS: Dict[CalculationStatus, FrozenSet[CalculationStatus]] = {
    CalculationStatus.DRAFT: frozenset({CalculationStatus.SUBMITTED}),
    CalculationStatus.SUBMITTED: frozenset({CalculationStatus.APPROVED}),
    CalculationStatus.APPROVED: frozenset(),
}

QUOTE_TRANSITIONS: Dict[QuoteStatus, FrozenSet[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.PENDING_APPROVAL}),
    QuoteStatus.PENDING_APPROVAL: frozenset({QuoteStatus.APPROVED, QuoteStatus.REJECTED}),
    QuoteStatus.APPROVED: frozenset({QuoteStatus.SENT}),
    QuoteStatus.REJECTED: frozenset({QuoteStatus.PENDING_APPROVAL, QuoteStatus.DRAFT}),
    QuoteStatus.SENT: frozenset(),
}

# 允许编辑内容的状态
EDITABLE_QUOTE_STATUSES = frozenset({QuoteStatus.DRAFT, QuoteStatus.REJECTED})


def ensure_calculation_transition(current: CalculationStatus, target: CalculationStatus) -> None:
    if target not in CALCULATION_TRANSITIONS[CalculationStatus(current)]:
        raise InvalidStateTransitionError("成本计算", CalculationStatus(current).value, target.value)


def ensure_quote_transition(current: QuoteStatus, target: QuoteStatus) -> None:
    if target not in QUOTE_TRANSITIONS[QuoteStatus(current)]:
        raise InvalidStateTransitionError("报价单", QuoteStatus(current).value, target.value)


def ensure_quote_editable(current: QuoteStatus) -> None:
    if QuoteStatus(current) not in EDITABLE_QUOTE_STATUSES:
        raise InvalidStateTransitionError("报价单", QuoteStatus(current).value, "编辑")
