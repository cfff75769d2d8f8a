"""
订单文档模型模块

订单以“文档”的形式存储：主键是不透明的字符串 ID，其余字段原样保存在 JSON 列里。
这样存储层对字段命名不做任何假设（历史数据里 email / neteaseEmail 混用），
字段的校验和归一化全部交给 services.normalizer 完成。
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, String
from sqlmodel import Field, SQLModel

from topup.core.snowflake import generate_record_id

from .base import utc_now


class OrderRecord(SQLModel, table=True):
    """
    订单文档模型

    字段说明：
    - id: 记录 ID（Snowflake 字符串，创建后不可变）
    - data: 订单原始字段（product、price、cost、status、timestamp、uid ...）
    - created_at: 文档创建时间
    - updated_at: 文档最后一次写入时间
    """
    __tablename__ = "orders"

    id: str = Field(
        default_factory=generate_record_id,
        sa_column=Column(String(32), primary_key=True),
    )
    data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
