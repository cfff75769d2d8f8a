"""CRUD 操作模块"""
from .order import submit as submit_order

__all__ = [
    "submit_order",
]
