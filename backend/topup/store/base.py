"""
存储协作方接口

订单存储是一个键值文档库：
- 读：subscribe 推送完整快照（record_id -> 原始字段），没有增量推送
- 写：create / put（局部更新）/ delete，失败时抛出 StoreUnavailableError

账单存储只追加，按 order_id 幂等。
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

RawRecord = dict[str, Any]
Snapshot = dict[str, RawRecord]
SnapshotListener = Callable[[Snapshot], None]
Unsubscribe = Callable[[], None]


class OrderStore(Protocol):
    def snapshot(self) -> Snapshot: ...

    def subscribe(self, listener: SnapshotListener) -> Unsubscribe: ...

    def create(self, record: Mapping[str, Any]) -> str: ...

    def put(self, record_id: str, patch: Mapping[str, Any]) -> None: ...

    def delete(self, record_id: str) -> None: ...


class StatementStore(Protocol):
    def create(self, record: Mapping[str, Any]) -> str: ...

    def list(self) -> list[RawRecord]: ...
