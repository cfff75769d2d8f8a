"""
基础模型模块

定义所有模型共用的时间工具函数。
订单时间戳沿用文档存储的约定：自 epoch 起的毫秒数。
"""
import time
from datetime import datetime, timezone

from sqlmodel import SQLModel


def utc_now() -> datetime:
    """
    获取当前 UTC 时间

    Returns:
        当前 UTC 时区的日期时间对象
    """
    return datetime.now(timezone.utc)


def now_ms() -> int:
    """当前时间的毫秒时间戳"""
    return int(time.time() * 1000)


# 导出 SQLModel 供其他模块使用
__all__ = ["SQLModel", "utc_now", "now_ms"]
