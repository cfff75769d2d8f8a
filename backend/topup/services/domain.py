"""
订单领域对象

规范化之后的订单、账单和客户身份。全部是不可变数据类，
状态变化通过 dataclasses.replace 生成新对象，不修改原对象。
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from topup.enums import OrderStatus

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_CUSTOMER_NAME = "Unknown Customer"
UNKNOWN_CUSTOMER_EMAIL = "unknown@example.com"


@dataclass(frozen=True)
class UidIdentity:
    """直充订单：客户提供游戏内 UID"""
    uid: str


@dataclass(frozen=True)
class CredentialIdentity:
    """代充订单：客户提供游戏账号邮箱和密码"""
    email: str
    password: str | None = None


CustomerIdentity = UidIdentity | CredentialIdentity


@dataclass(frozen=True)
class Order:
    """
    规范化订单

    - price / cost 已校验为非负有限 Decimal
    - profit 是管理员手工修正的利润（可为空），只用于单条订单展示，
      汇总统计一律按 price - cost 重新计算
    - timestamp 是创建时间（毫秒），创建后不可变
    """
    id: str
    product: str
    price: Decimal
    cost: Decimal
    status: OrderStatus
    timestamp: int
    profit: Decimal | None = None
    customer_identity: CustomerIdentity | None = None
    transaction_id: str | None = None
    customer_name: str = UNKNOWN_CUSTOMER_NAME
    customer_email: str = UNKNOWN_CUSTOMER_EMAIL
    customer_phone: str | None = None
    payment_method: str | None = None

    @property
    def derived_profit(self) -> Decimal:
        return self.price - self.cost

    @property
    def display_profit(self) -> Decimal:
        """展示用利润：存在且非零的手工修正值优先"""
        if self.profit is not None and self.profit != 0:
            return self.profit
        return self.derived_profit

    @property
    def is_uid_purchase(self) -> bool:
        return isinstance(self.customer_identity, UidIdentity)

    @property
    def is_credential_purchase(self) -> bool:
        return isinstance(self.customer_identity, CredentialIdentity)


@dataclass(frozen=True)
class Statement:
    """
    账单：订单完成时的不可变快照

    id 在写入账单存储之前为空。账单没有状态字段，统计时一律视为已完成。
    """
    order_id: str
    product: str
    price: Decimal
    cost: Decimal
    profit: Decimal
    timestamp: int
    id: str | None = None
    approved_at: int | None = None

    @property
    def status(self) -> OrderStatus:
        return OrderStatus.approved

    @classmethod
    def for_order(cls, order: Order, *, approved_at: int | None = None) -> Statement:
        return cls(
            order_id=order.id,
            product=order.product,
            price=order.price,
            cost=order.cost,
            profit=order.price - order.cost,
            timestamp=order.timestamp,
            approved_at=approved_at,
        )
