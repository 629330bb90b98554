"""
报价成本核算与审批引擎
"""
__version__ = "0.1.0"
