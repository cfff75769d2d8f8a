"""
自定义异常模块

定义应用特定的异常类，用于统一的错误处理。
所有业务异常都继承自 AppError，在 main.py 中有统一的异常处理器。

订单相关的异常分为四类：
- ValidationError: 原始订单记录不合法（负数金额、非有限数值等）
- InvalidTransitionError: 当前状态下不允许的状态流转
- OrderNotFoundError: 订单不存在（已删除或 ID 错误）
- StoreUnavailableError: 订单存储 / 账单存储读写失败
"""
from __future__ import annotations


class AppError(Exception):
    """
    应用自定义异常类

    用于业务逻辑中的错误处理，包含：
    - code: 业务错误码（用于前端区分不同错误）
    - message: 错误消息（用户友好的提示）
    - status_code: HTTP 状态码（400, 404, 500 等）

    使用示例：
        raise AppError(code=404201, message="Product not found", status_code=404)
    """

    def __init__(self, *, code: int, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class OrderError(AppError):
    """订单核心逻辑抛出的异常基类"""


class ValidationError(OrderError):
    """
    订单记录校验失败

    只拒绝单条记录，不影响同一快照中其他记录的处理。
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(code=422101, message=message, status_code=422)
        self.field = field


class InvalidTransitionError(OrderError):
    """
    非法状态流转

    携带尝试的动作和订单当前状态；抛出时订单状态不变，也不会生成账单。
    """

    def __init__(self, *, action: str, current_status: str, order_id: str | None = None) -> None:
        super().__init__(
            code=409101,
            message=f"Cannot {action} an order in status {current_status!r}",
            status_code=409,
        )
        self.action = action
        self.current_status = current_status
        self.order_id = order_id


class OrderNotFoundError(OrderError):
    def __init__(self, order_id: str) -> None:
        super().__init__(code=404101, message=f"Order {order_id} not found", status_code=404)
        self.order_id = order_id


class StoreUnavailableError(OrderError):
    """
    存储协作方读写失败

    核心逻辑不自动重试，直接向上抛出，由调用方决定是否重试。
    """

    def __init__(self, message: str = "Order store unavailable") -> None:
        super().__init__(code=503101, message=message, status_code=503)


def product_not_found(product: str) -> AppError:
    """
    创建“商品不存在”异常（便捷函数）

    下单时商品名不在价目表中。

    Returns:
        AppError: 商品不存在异常实例
    """
    return AppError(code=404201, message=f"Product {product!r} not found", status_code=404)
