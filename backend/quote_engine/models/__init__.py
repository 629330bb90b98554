"""数据模型"""
from quote_engine.models.costing import (
    CostCalculation,
    CostCalculationDetail,
    CostParameter,
    Equipment,
    ProcessCategory,
    ProcessRouteDetail,
    ProcessStep,
    ProductProcessRoute,
)
from quote_engine.models.quote import (
    Quote,
    QuoteActivityLog,
    QuoteApproval,
    QuoteItem,
    QuoteSendLog,
    QuoteTerm,
    QuoteTermsTemplate,
    QuoteVersion,
)
from quote_engine.models.sequence import DocumentSequence

__all__ = [
    "CostCalculation",
    "CostCalculationDetail",
    "CostParameter",
    "DocumentSequence",
    "Equipment",
    "ProcessCategory",
    "ProcessRouteDetail",
    "ProcessStep",
    "ProductProcessRoute",
    "Quote",
    "QuoteActivityLog",
    "QuoteApproval",
    "QuoteItem",
    "QuoteSendLog",
    "QuoteTerm",
    "QuoteTermsTemplate",
    "QuoteVersion",
]
