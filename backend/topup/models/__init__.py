"""
数据库模型定义模块

本模块使用 SQLModel 定义所有数据库表结构。

模型按功能拆分：
- order.py: 订单文档模型
- statement.py: 账单（已完成订单快照）模型
"""
from sqlmodel import SQLModel

from .base import now_ms, utc_now
from .order import OrderRecord
from .statement import StatementRecord

__all__ = [
    "SQLModel",
    "utc_now",
    "now_ms",
    "OrderRecord",
    "StatementRecord",
]
