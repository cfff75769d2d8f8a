"""
订单状态流转服务

状态机：pending -> approved / rejected，两个都是终态。

- 纯函数 approve / reject / delete / correct_profit 只计算结果，不做 I/O
- OrderLifecycleController 把结果写到订单存储和账单存储

审批时先写账单、再改订单状态。账单存储按 order_id 幂等，
状态写入失败后重试审批也不会产生重复账单。
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from topup.api.errors import InvalidTransitionError, OrderNotFoundError, ValidationError
from topup.enums import OrderStatus
from topup.models import now_ms
from topup.services.domain import Order, Statement
from topup.services.normalizer import (
    normalize_snapshot,
    parse_money,
    statement_to_record,
    to_json_number,
)
from topup.store.base import OrderStore, Snapshot, StatementStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """
    一次状态流转的结果

    - order: 流转后的订单
    - patch: 需要写回订单存储的字段
    - statement: 需要写入账单存储的账单（只有审批会产生）
    - changed: 是否真的发生了变化（重复审批为 False）
    """
    order: Order
    patch: dict[str, Any] = field(default_factory=dict)
    statement: Statement | None = None
    changed: bool = True


def approve(order: Order, approved_at: int | None = None) -> Transition:
    """
    审批通过

    Raises:
        InvalidTransitionError: 订单已被拒绝
    """
    if order.status is OrderStatus.approved:
        return Transition(order=order, changed=False)
    if order.status is not OrderStatus.pending:
        raise InvalidTransitionError(
            action="approve", current_status=order.status.value, order_id=order.id
        )

    profit = order.price - order.cost
    return Transition(
        order=replace(order, status=OrderStatus.approved, profit=profit),
        patch={"status": OrderStatus.approved.value, "profit": to_json_number(profit)},
        statement=Statement.for_order(order, approved_at=approved_at),
    )


def reject(order: Order) -> Transition:
    if order.status is not OrderStatus.pending:
        raise InvalidTransitionError(
            action="reject", current_status=order.status.value, order_id=order.id
        )
    return Transition(
        order=replace(order, status=OrderStatus.rejected),
        patch={"status": OrderStatus.rejected.value},
    )


def delete(order: Order) -> Transition:
    """任意状态都可以删除；已写入的账单保留"""
    return Transition(order=order)


def correct_profit(order: Order, new_profit: Any) -> Transition:
    """
    手工修正单条订单的利润

    修正值只用于展示，汇总统计仍按 price - cost 计算。

    Raises:
        ValidationError: 修正值不是有限数值
    """
    profit = parse_money(new_profit, field_name="profit", allow_negative=True)
    return Transition(
        order=replace(order, profit=profit),
        patch={"profit": to_json_number(profit)},
    )


class OrderLifecycleController:
    """
    订单流转控制器

    构造时订阅订单存储，始终持有最近一次推送的完整快照；
    状态校验基于这份快照进行。
    """

    def __init__(
        self,
        order_store: OrderStore,
        statement_store: StatementStore,
        clock: Callable[[], int] = now_ms,
    ):
        self.order_store = order_store
        self.statement_store = statement_store
        self.clock = clock
        self._orders: dict[str, Order] = {}
        self._invalid: dict[str, ValidationError] = {}
        self._unsubscribe = order_store.subscribe(self._on_snapshot)

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        normalized = normalize_snapshot(snapshot)
        self._orders = {order.id: order for order in normalized.orders}
        self._invalid = normalized.rejected

    @property
    def orders(self) -> list[Order]:
        return list(self._orders.values())

    @property
    def invalid_records(self) -> dict[str, ValidationError]:
        return dict(self._invalid)

    def close(self) -> None:
        self._unsubscribe()

    def get(self, order_id: str) -> Order:
        """
        Raises:
            OrderNotFoundError: 快照里没有该订单
            ValidationError: 该订单记录未通过校验
        """
        if order_id in self._invalid:
            raise self._invalid[order_id]
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def approve(self, order_id: str) -> Transition:
        transition = approve(self.get(order_id), approved_at=self.clock())
        if not transition.changed:
            logger.info("Order %s already approved, skipping", order_id)
            return transition

        statement_id = self.statement_store.create(statement_to_record(transition.statement))
        self.order_store.put(order_id, transition.patch)
        logger.info("Order %s approved, statement %s", order_id, statement_id)
        return replace(transition, statement=replace(transition.statement, id=statement_id))

    def reject(self, order_id: str) -> Transition:
        transition = reject(self.get(order_id))
        self.order_store.put(order_id, transition.patch)
        logger.info("Order %s rejected", order_id)
        return transition

    def delete(self, order_id: str) -> None:
        # 未通过校验的记录也允许删除
        if order_id not in self._invalid:
            delete(self.get(order_id))
        self.order_store.delete(order_id)
        logger.info("Order %s deleted", order_id)

    def correct_profit(self, order_id: str, new_profit: Any) -> Transition:
        transition = correct_profit(self.get(order_id), new_profit)
        self.order_store.put(order_id, transition.patch)
        logger.info("Order %s profit corrected to %s", order_id, transition.order.profit)
        return transition
