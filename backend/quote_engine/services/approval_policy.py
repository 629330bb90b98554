"""
审批分级策略
"""
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from quote_engine.core.config import settings
from quote_engine.models.enums import ApprovalStatus, ApproverRole, QuoteStatus

APPROVAL_CHAIN = [
    ApproverRole.ENGINEER_LEAD,
    ApproverRole.SALES_MANAGER,
    ApproverRole.GENERAL_MANAGER,
]


def determine_approval_levels(total_amount: Decimal) -> List[Tuple[int, ApproverRole]]:
    """
    根据报价总金额确定审批层级

    < 10000           工程主管
    10000 ~ 49999.99  工程主管、业务经理
    >= 50000          工程主管、业务经理、总经理
    """
    amount = Decimal(str(total_amount))
    if amount < Decimal(str(settings.APPROVAL_SECOND_LEVEL_THRESHOLD)):
        count = 1
    elif amount < Decimal(str(settings.APPROVAL_THIRD_LEVEL_THRESHOLD)):
        count = 2
    else:
        count = 3
    return [(level, role) for level, role in enumerate(APPROVAL_CHAIN[:count], 1)]


def evaluate_approvals(statuses: Iterable[ApprovalStatus]) -> Optional[QuoteStatus]:
    """
    汇总一轮审批结果

    任一驳回 -> rejected；全部通过 -> approved；否则仍在审批中返回 None
    """
    statuses = [ApprovalStatus(s) for s in statuses]
    if any(s == ApprovalStatus.REJECTED for s in statuses):
        return QuoteStatus.REJECTED
    if statuses and all(s == ApprovalStatus.APPROVED for s in statuses):
        return QuoteStatus.APPROVED
    return None
