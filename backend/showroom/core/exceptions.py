"""
业务异常

服务层只抛这里定义的异常，由 main.py 中注册的处理器统一转换为 HTTP 响应：
{"detail": 提示信息, "code": 错误码}

- NotFoundError      引用的记录不存在（404）
- ValidationFailed   请求字段不合法 / 状态流转不允许（400）
- InsufficientStock  配件库存不足（409）
- VehicleNotAvailable 车辆当前状态不可销售（409）
"""

from typing import Optional


class ShowroomError(Exception):
    """业务异常基类"""
    status_code: int = 400
    code: str = "showroom_error"
    default_message: str = "业务处理失败"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ===== 不存在 =====
class NotFoundError(ShowroomError):
    status_code = 404
    code = "not_found"
    default_message = "记录不存在"


class VehicleNotFound(NotFoundError):
    code = "vehicle_not_found"
    default_message = "车辆不存在"


class RepairNotFound(NotFoundError):
    code = "repair_not_found"
    default_message = "维修单不存在"


class SparePartNotFound(NotFoundError):
    code = "spare_part_not_found"
    default_message = "配件不存在"


class RepairPartNotFound(NotFoundError):
    code = "repair_part_not_found"
    default_message = "维修用料明细不存在"


class CustomerNotFound(NotFoundError):
    code = "customer_not_found"
    default_message = "客户不存在"


class UserNotFound(NotFoundError):
    code = "user_not_found"
    default_message = "员工不存在"


class TransactionNotFound(NotFoundError):
    code = "transaction_not_found"
    default_message = "交易记录不存在"


# ===== 校验失败 =====
class ValidationFailed(ShowroomError):
    status_code = 400
    code = "validation_failed"
    default_message = "请求参数不合法"


class InvalidStatusTransition(ValidationFailed):
    code = "invalid_status_transition"
    default_message = "不允许的状态变更"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"状态不允许从 '{current}' 变更为 '{requested}'")


class VehicleInUse(ValidationFailed):
    code = "vehicle_in_use"
    default_message = "车辆已有维修单或交易记录，不能删除"


# ===== 冲突 =====
class InsufficientStock(ShowroomError):
    status_code = 409
    code = "insufficient_stock"
    default_message = "库存不足"

    def __init__(self, part_code: str, available: int, requested: int):
        self.part_code = part_code
        self.available = available
        self.requested = requested
        super().__init__(f"配件 {part_code} 库存不足：可用 {available}，需要 {requested}")


class VehicleNotAvailable(ShowroomError):
    status_code = 409
    code = "vehicle_not_available"
    default_message = "车辆当前状态不可销售"

    def __init__(self, vehicle_code: str, status: str):
        self.vehicle_code = vehicle_code
        self.status = status
        super().__init__(f"车辆 {vehicle_code} 当前状态为 '{status}'，不可销售")
