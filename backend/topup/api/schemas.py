"""
API 请求/响应数据模型（Schema）

定义所有 API 接口的请求和响应数据结构。
使用 Pydantic 进行数据验证和序列化。

关键概念：
- BaseModel: Pydantic 的模型基类，用于数据验证
- Field: 字段验证器，定义字段的约束（长度、范围等）
- 这些模型不是数据库表，只用于 API 数据交换
- 领域对象（Order / Statement / Stats ...）在这里转换成对外的字段
"""
from __future__ import annotations

from decimal import Decimal  # 精确数值类型，用于金额
from typing import Any  # 任意类型

from pydantic import BaseModel, Field, model_validator  # Pydantic 核心类

from topup.enums import Currency, OrderStatus, OrderType, TimeWindow
from topup.services.aggregator import Overview, ProductBreakdown, Stats
from topup.services.domain import CredentialIdentity, Order, Statement, UidIdentity
from topup.services.lifecycle import Transition

# ============================================================
# 通用响应模型
# ============================================================


class Message(BaseModel):
    """
    消息响应模型

    用于 API 返回简单的文本消息。
    """
    message: str


class ApiEnvelope(BaseModel):
    """
    API 统一响应格式

    所有 API 响应都使用这个格式，包含：
    - code: 状态码（0 表示成功，非 0 表示错误）
    - message: 消息（成功时为 "success"，错误时为错误描述）
    - data: 数据（成功时返回业务数据，错误时为 None）

    示例响应：
        {"code": 0, "message": "success", "data": {...}}
        {"code": 409101, "message": "Cannot approve an order in status 'rejected'", "data": None}
    """
    code: int = 0  # 默认成功
    message: str = "success"  # 默认成功消息
    data: Any | None = None  # 业务数据（可选）


# ============================================================
# 下单
# ============================================================


class OrderSubmitRequest(BaseModel):
    """
    下单请求模型

    - uid 订单必须提供 uid
    - in-game 订单必须提供游戏账号邮箱（密码可选）
    - bkash_last_digits 是付款手机号的后三位
    """
    order_type: OrderType = OrderType.uid  # 下单类型
    product: str = Field(min_length=1, max_length=128)  # 商品名（对应价目表）
    uid: str | None = Field(default=None, max_length=64)  # 游戏内 UID
    email: str | None = Field(default=None, max_length=255)  # 游戏账号邮箱
    password: str | None = Field(default=None, max_length=255)  # 游戏账号密码
    customer_name: str = Field(min_length=1, max_length=128)  # 客户姓名
    customer_phone: str = Field(default="", max_length=32)  # 客户手机号
    transaction_id: str = Field(min_length=1, max_length=64)  # bKash 流水号
    bkash_last_digits: str = Field(pattern=r"^\d{3}$")  # bKash 号码后三位

    @model_validator(mode="after")
    def check_identity(self) -> OrderSubmitRequest:
        if self.order_type is OrderType.uid and not (self.uid or "").strip():
            raise ValueError("uid is required for UID orders")
        if self.order_type is OrderType.in_game and not (self.email or "").strip():
            raise ValueError("email is required for in-game orders")
        return self


class OrderSubmitData(BaseModel):
    id: str  # 订单记录 ID
    status: OrderStatus  # 初始状态（pending）


# ============================================================
# 订单管理
# ============================================================


class OrderPublic(BaseModel):
    """
    订单数据模型

    profit 为展示用利润（手工修正值优先）；profit_override 为原始修正值。
    """
    id: str
    product: str
    price: Decimal
    cost: Decimal
    profit: Decimal
    profit_override: Decimal | None = None
    status: OrderStatus
    timestamp: int
    uid: str | None = None
    email: str | None = None
    transaction_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    payment_method: str | None = None

    @classmethod
    def from_order(cls, order: Order) -> OrderPublic:
        identity = order.customer_identity
        return cls(
            id=order.id,
            product=order.product,
            price=order.price,
            cost=order.cost,
            profit=order.display_profit,
            profit_override=order.profit,
            status=order.status,
            timestamp=order.timestamp,
            uid=identity.uid if isinstance(identity, UidIdentity) else None,
            email=identity.email if isinstance(identity, CredentialIdentity) else None,
            transaction_id=order.transaction_id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            payment_method=order.payment_method,
        )


class OrdersData(BaseModel):
    """
    订单列表响应模型

    invalid_ids 为未通过校验、被跳过的记录 ID。
    """
    data: list[OrderPublic]  # 订单列表（最新的在前）
    count: int  # 订单数量
    invalid_ids: list[str] = []  # 校验失败的记录


class ProfitCorrectionRequest(BaseModel):
    """手工修正利润请求"""
    profit: Decimal = Field(allow_inf_nan=False)  # 修正后的利润，可为负数


class StatementPublic(BaseModel):
    id: str | None = None
    order_id: str
    product: str
    price: Decimal
    cost: Decimal
    profit: Decimal
    timestamp: int
    approved_at: int | None = None

    @classmethod
    def from_statement(cls, statement: Statement) -> StatementPublic:
        return cls(
            id=statement.id,
            order_id=statement.order_id,
            product=statement.product,
            price=statement.price,
            cost=statement.cost,
            profit=statement.profit,
            timestamp=statement.timestamp,
            approved_at=statement.approved_at,
        )


class StatementsData(BaseModel):
    data: list[StatementPublic]  # 账单列表（最新的在前）
    count: int


class TransitionData(BaseModel):
    """
    状态流转结果

    changed 为 False 表示订单本来就处于目标状态（重复审批）。
    """
    order: OrderPublic
    changed: bool = True
    statement: StatementPublic | None = None

    @classmethod
    def from_transition(cls, transition: Transition) -> TransitionData:
        return cls(
            order=OrderPublic.from_order(transition.order),
            changed=transition.changed,
            statement=(
                StatementPublic.from_statement(transition.statement)
                if transition.statement
                else None
            ),
        )


# ============================================================
# 统计
# ============================================================


class StatsData(BaseModel):
    total_orders: int
    pending_orders: int
    approved_orders: int
    rejected_orders: int
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    spent_today: Decimal
    monthly_spending: Decimal

    @classmethod
    def from_stats(cls, stats: Stats) -> StatsData:
        return cls(**vars(stats))


class ProductBreakdownPublic(BaseModel):
    product: str
    count: int
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    average_profit: Decimal
    profit_margin: Decimal  # 百分比
    roi: Decimal  # 百分比

    @classmethod
    def from_breakdown(cls, row: ProductBreakdown) -> ProductBreakdownPublic:
        return cls(**vars(row))


class ProductsData(BaseModel):
    source: str
    data: list[ProductBreakdownPublic]  # 按利润降序


class ProfitWindowData(BaseModel):
    window: TimeWindow
    profit: Decimal
    reference_time: int


class OverviewData(BaseModel):
    """
    经营总览

    全部基于账单计算；profit_margin / roi 为百分比。
    """
    total_revenue: Decimal
    total_spending: Decimal
    total_profit: Decimal
    profit_margin: Decimal
    roi: Decimal
    total_orders: int
    avg_order_value: Decimal
    today_profit: Decimal
    weekly_profit: Decimal
    monthly_profit: Decimal
    top_product: str
    top_product_profit: Decimal

    @classmethod
    def from_overview(cls, overview: Overview) -> OverviewData:
        return cls(**vars(overview))


# ============================================================
# 价目表 / 工具
# ============================================================


class CatalogData(BaseModel):
    """
    价目表

    商品价格为不含税售价，下单时再加 tax_rate 的税费。
    """
    currency: str
    tax_rate: Decimal
    uid_packages: dict[str, Any] = {}  # 直充商品
    in_game_packages: dict[str, Any] = {}  # 代充商品


class ConvertData(BaseModel):
    amount: Decimal
    from_currency: Currency
    to_currency: Currency
    result: Decimal
    rate: Decimal  # 每 1 USD 兑换的 BDT
