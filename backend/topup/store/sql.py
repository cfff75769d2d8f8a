"""
基于数据库的存储实现

- SqlOrderStore: orders 表（文档存储，字段原样存放在 JSON 列）
- SqlStatementStore: statements 表（只追加，order_id 唯一）

数据库异常统一转换成 StoreUnavailableError，不在这里重试。
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from topup.api.errors import OrderNotFoundError, StoreUnavailableError
from topup.models import OrderRecord, StatementRecord, utc_now

from .base import RawRecord, Snapshot, SnapshotListener, Unsubscribe

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(session: Session, action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Store %s failed: %s", action, e)
        raise StoreUnavailableError(f"Store {action} failed") from e


class SqlOrderStore:
    """
    订单文档存储

    每次写入成功后向所有订阅者推送一次完整快照。
    """

    def __init__(self, session: Session):
        self.session = session
        self._listeners: list[SnapshotListener] = []

    def snapshot(self) -> Snapshot:
        with _store_errors(self.session, "read"):
            rows = self.session.exec(select(OrderRecord).order_by(OrderRecord.created_at)).all()
        return {row.id: dict(row.data) for row in rows}

    def get(self, record_id: str) -> RawRecord:
        with _store_errors(self.session, "read"):
            row = self.session.get(OrderRecord, record_id)
        if row is None:
            raise OrderNotFoundError(record_id)
        return dict(row.data)

    def subscribe(self, listener: SnapshotListener) -> Unsubscribe:
        """注册快照监听，立即推送一次当前快照"""
        self._listeners.append(listener)
        listener(self.snapshot())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def create(self, record: Mapping[str, Any]) -> str:
        row = OrderRecord(data=dict(record))
        with _store_errors(self.session, "create"):
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        logger.info("Order record %s created", row.id)
        self._publish()
        return row.id

    def put(self, record_id: str, patch: Mapping[str, Any]) -> None:
        """局部更新：只覆盖 patch 中出现的字段"""
        with _store_errors(self.session, "update"):
            row = self.session.get(OrderRecord, record_id)
            if row is None:
                raise OrderNotFoundError(record_id)
            # JSON 列只有重新赋值才会被标记为脏数据
            row.data = {**row.data, **patch}
            row.updated_at = utc_now()
            self.session.add(row)
            self.session.commit()
        self._publish()

    def delete(self, record_id: str) -> None:
        with _store_errors(self.session, "delete"):
            row = self.session.get(OrderRecord, record_id)
            if row is None:
                raise OrderNotFoundError(record_id)
            self.session.delete(row)
            self.session.commit()
        logger.info("Order record %s deleted", record_id)
        self._publish()

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)


def _ms_to_datetime(value: Any) -> datetime:
    if value is None:
        return utc_now()
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def _statement_record(row: StatementRecord) -> RawRecord:
    return {
        "id": row.id,
        "orderId": row.order_id,
        "product": row.product,
        "price": row.price,
        "cost": row.cost,
        "profit": row.profit,
        "timestamp": row.timestamp,
        "approvedAt": _datetime_to_ms(row.approved_at),
    }


class SqlStatementStore:
    """账单存储：同一个 order_id 只会写入一条"""

    def __init__(self, session: Session):
        self.session = session

    def _find_by_order(self, order_id: str) -> StatementRecord | None:
        return self.session.exec(
            select(StatementRecord).where(StatementRecord.order_id == order_id)
        ).first()

    def create(self, record: Mapping[str, Any]) -> str:
        """
        写入账单

        Returns:
            账单 ID；该订单已有账单时返回已有账单的 ID
        """
        order_id = str(record["orderId"])
        with _store_errors(self.session, "read"):
            existing = self._find_by_order(order_id)
        if existing:
            logger.info("Statement for order %s already exists: %s", order_id, existing.id)
            return existing.id

        row = StatementRecord(
            order_id=order_id,
            product=str(record.get("product") or ""),
            price=Decimal(str(record.get("price") or 0)),
            cost=Decimal(str(record.get("cost") or 0)),
            profit=Decimal(str(record.get("profit") or 0)),
            timestamp=int(record.get("timestamp") or 0),
            approved_at=_ms_to_datetime(record.get("approvedAt")),
        )
        # 并发审批时依赖 order_id 唯一约束去重
        try:
            self.session.add(row)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            with _store_errors(self.session, "read"):
                existing = self._find_by_order(order_id)
            if existing is None:
                raise StoreUnavailableError("Statement store rejected the write")
            return existing.id
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Store create statement failed: %s", e)
            raise StoreUnavailableError("Store create failed") from e

        self.session.refresh(row)
        logger.info("Statement %s recorded for order %s", row.id, order_id)
        return row.id

    def list(self) -> list[RawRecord]:
        """全部账单，最新的在前"""
        with _store_errors(self.session, "read"):
            rows = self.session.exec(
                select(StatementRecord).order_by(StatementRecord.timestamp.desc())
            ).all()
        return [_statement_record(row) for row in rows]
