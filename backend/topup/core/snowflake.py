"""
Snowflake ID 生成器模块

订单文档和账单记录的主键都来自这里。
文档存储把记录 ID 当作不透明字符串，所以对外提供字符串形式的 ID。

ID 结构（64 位）：
- 41 位：毫秒时间戳（从 _EPOCH_MS 开始）
- 10 位：节点 ID（0-1023）
- 12 位：同一毫秒内的序列号（0-4095）
"""
from __future__ import annotations

import threading
import time

from topup.core.config import settings

# 2024-01-01T00:00:00Z
_EPOCH_MS = 1704067200000
_MAX_BACKWARD_DRIFT_MS = 5000


class Snowflake:
    """线程安全的 64 位 ID 生成器"""

    def __init__(self, *, node_id: int) -> None:
        if not (0 <= node_id <= 1023):
            raise ValueError("SNOWFLAKE_NODE_ID must be in [0, 1023]")
        self._node_id = node_id
        self._lock = threading.Lock()
        self._last_ts = -1
        self._seq = 0

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    def next_id(self) -> int:
        """
        生成下一个唯一 ID

        时钟回拨不超过 5 秒时等待时间追上；超过则拒绝生成，避免重复 ID。

        Raises:
            RuntimeError: 当时钟回拨超过 5 秒时
        """
        with self._lock:
            ts = self._now_ms()
            if ts < self._last_ts:
                drift = self._last_ts - ts
                if drift > _MAX_BACKWARD_DRIFT_MS:
                    raise RuntimeError(
                        f"Clock moved backwards by {drift}ms. "
                        "Refusing to generate IDs to prevent duplicates."
                    )
                ts = self._wait_until(self._last_ts)

            if ts == self._last_ts:
                self._seq = (self._seq + 1) & 0xFFF
                if self._seq == 0:
                    # 本毫秒序列号用完
                    ts = self._wait_until(self._last_ts + 1)
            else:
                self._seq = 0

            self._last_ts = ts
            return ((ts - _EPOCH_MS) << 22) | (self._node_id << 12) | self._seq

    @classmethod
    def _wait_until(cls, target_ms: int) -> int:
        ts = cls._now_ms()
        while ts < target_ms:
            time.sleep(0.001)
            ts = cls._now_ms()
        return ts


_GENERATOR: Snowflake | None = None


def _get_generator() -> Snowflake:
    global _GENERATOR
    if _GENERATOR is None:
        _GENERATOR = Snowflake(node_id=settings.SNOWFLAKE_NODE_ID)
    return _GENERATOR


def generate_id() -> int:
    """生成整数形式的唯一 ID"""
    return _get_generator().next_id()


def generate_record_id() -> str:
    """
    生成字符串形式的记录 ID

    订单存储的记录 ID 是不透明字符串（与文档数据库的 push key 一致）。

    示例：
        >>> generate_record_id()
        '1234567890123456789'
    """
    return str(generate_id())
