"""
账单模型模块

账单是订单完成时写下的不可变快照，是利润分析的唯一数据来源。
order_id 唯一，保证一个订单最多对应一条账单（重复审批不会产生重复账单）。
"""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Column, DateTime, Numeric, String
from sqlmodel import Field, SQLModel

from topup.core.snowflake import generate_record_id

from .base import utc_now


class StatementRecord(SQLModel, table=True):
    """
    账单记录模型

    字段说明：
    - id: 主键（Snowflake 字符串）
    - order_id: 来源订单 ID（唯一，用于去重）
    - product: 商品名称快照
    - price / cost / profit: 金额快照，profit = price - cost
    - timestamp: 来源订单的创建时间（毫秒）
    - approved_at: 审批时间
    """
    __tablename__ = "statements"

    id: str = Field(
        default_factory=generate_record_id,
        sa_column=Column(String(32), primary_key=True),
    )
    order_id: str = Field(sa_column=Column(String(32), unique=True, index=True, nullable=False))
    product: str = Field(max_length=128)

    price: Decimal = Field(sa_column=Column(Numeric(14, 2), nullable=False))
    cost: Decimal = Field(sa_column=Column(Numeric(14, 2), nullable=False))
    profit: Decimal = Field(sa_column=Column(Numeric(14, 2), nullable=False))

    timestamp: int = Field(sa_column=Column(BigInteger, index=True, nullable=False))
    approved_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
