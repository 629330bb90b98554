"""
统一异常定义

分类：
1. 校验异常（400）：参数不合法、缺少工艺路线、状态不允许的操作前置条件
2. 资源不存在（404）：报价单、成本计算、工艺路线、当前用户的待审批记录
3. 冲突异常（409）：违反状态机的流转
4. 持久化异常（500）：事务回滚后统一抛出，调用方自行决定是否重试
"""


class AppException(Exception):
    """应用基础异常类"""

    def __init__(
        self,
        message: str,
        error_code: str = "APP_ERROR",
        status_code: int = 500,
        details: dict = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationException(AppException):
    """数据验证异常"""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", details: dict = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            details=details
        )


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, resource: str, resource_id: str = None, error_code: str = "NOT_FOUND"):
        message = f"{resource}不存在"
        if resource_id:
            message = f"{resource} [{resource_id}] 不存在"
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=404,
            details={"resource": resource, "resource_id": resource_id}
        )


class BusinessException(AppException):
    """业务逻辑异常"""

    def __init__(self, message: str, error_code: str = "BUSINESS_ERROR", details: dict = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            details=details
        )


class ConflictException(AppException):
    """状态冲突异常"""

    def __init__(self, message: str, error_code: str = "CONFLICT", details: dict = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=409,
            details=details
        )


class PersistenceException(AppException):
    """存储层异常（已回滚）"""

    def __init__(self, action: str):
        super().__init__(
            message=f"{action}失败：数据存储异常，事务已回滚",
            error_code="PERSISTENCE_ERROR",
            status_code=500,
            details={"action": action}
        )


# ==================== 成本核算 ====================

class InvalidQuantityError(ValidationException):
    def __init__(self, quantity):
        super().__init__(
            message=f"数量必须为正整数: {quantity}",
            error_code="INVALID_QUANTITY",
            details={"quantity": quantity}
        )


class InvalidMarginError(ValidationException):
    def __init__(self, margin):
        super().__init__(
            message=f"毛利率必须在 [0, 100) 区间内: {margin}",
            error_code="INVALID_MARGIN",
            details={"margin_percentage": str(margin)}
        )


class NoRouteFoundError(ValidationException):
    """产品类别下没有任何可用工艺路线"""

    def __init__(self, product_category: str = None):
        super().__init__(
            message=f"产品类别 [{product_category}] 没有可用的工艺路线",
            error_code="NO_ROUTE_FOUND",
            details={"product_category": product_category}
        )


class StepEquipmentMissingError(ValidationException):
    """工序需要设备但既未指定也无默认设备"""

    def __init__(self, process_step_code: str, sequence: int):
        super().__init__(
            message=f"第{sequence}道工序 [{process_step_code}] 需要设备，但未指定且无默认设备",
            error_code="STEP_EQUIPMENT_MISSING",
            details={"process_step": process_step_code, "sequence": sequence}
        )


# ==================== 报价与审批 ====================

class EmptyQuoteItemsError(ValidationException):
    def __init__(self):
        super().__init__(message="报价单至少需要一个报价项", error_code="EMPTY_QUOTE_ITEMS")


class InvalidStateTransitionError(ConflictException):
    """状态机不允许的流转"""

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            message=f"{entity}当前状态 {current} 不允许转换为 {target}",
            error_code="INVALID_STATE_TRANSITION",
            details={"entity": entity, "current": current, "target": target}
        )


class NoPendingApprovalError(NotFoundException):
    """当前用户在该报价单上没有待处理的审批"""

    def __init__(self, quote_id: str, approver_id: str):
        super().__init__("待审批记录", f"{quote_id}/{approver_id}", error_code="NO_PENDING_APPROVAL")


class ApprovalOrderError(ConflictException):
    """严格顺序模式下，低层级审批尚未完成"""

    def __init__(self, level: int, blocking_level: int):
        super().__init__(
            message=f"第{level}级审批需等待第{blocking_level}级审批完成",
            error_code="APPROVAL_ORDER_VIOLATION",
            details={"level": level, "blocking_level": blocking_level}
        )
