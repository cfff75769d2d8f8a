from __future__ import annotations

from decimal import Decimal

import pytest

from topup.api.errors import (
    InvalidTransitionError,
    OrderNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from topup.enums import OrderStatus
from topup.services import lifecycle
from topup.services.lifecycle import OrderLifecycleController
from topup.services.normalizer import normalize_order

from fakes import MemoryOrderStore, MemoryStatementStore


def _pending(**overrides):
    raw = {"product": "20x Ruby Keys", "price": 2890, "cost": 1233.1, "status": "pending", "timestamp": 1000}
    raw.update(overrides)
    return raw


def _controller(records):
    orders = MemoryOrderStore(records)
    statements = MemoryStatementStore()
    controller = OrderLifecycleController(orders, statements, clock=lambda: 5000)
    return controller, orders, statements


def test_pure_approve_sets_profit_and_emits_statement():
    order = normalize_order(_pending(), record_id="o1")
    result = lifecycle.approve(order, approved_at=5000)
    assert result.changed
    assert result.order.status is OrderStatus.approved
    assert result.order.profit == Decimal("1656.9")
    assert result.patch == {"status": "approved", "profit": 1656.9}
    assert result.statement.order_id == "o1"
    assert result.statement.profit == Decimal("1656.9")
    assert result.statement.timestamp == 1000
    assert result.statement.approved_at == 5000
    # the input order is untouched
    assert order.status is OrderStatus.pending


def test_pure_approve_on_fulfilled_is_noop():
    order = normalize_order(_pending(status="completed"), record_id="o1")
    result = lifecycle.approve(order)
    assert not result.changed
    assert result.statement is None
    assert result.patch == {}


def test_pure_reject_then_approve_fails():
    order = normalize_order(_pending(), record_id="o1")
    rejected = lifecycle.reject(order).order
    assert rejected.status is OrderStatus.rejected
    with pytest.raises(InvalidTransitionError) as exc:
        lifecycle.approve(rejected)
    assert exc.value.action == "approve"
    assert exc.value.current_status == "rejected"
    assert exc.value.status_code == 409


def test_pure_reject_terminal_fails():
    for status in ("approved", "rejected"):
        order = normalize_order(_pending(status=status), record_id="o1")
        with pytest.raises(InvalidTransitionError):
            lifecycle.reject(order)


def test_pure_correct_profit_validates():
    order = normalize_order(_pending(status="rejected"), record_id="o1")
    result = lifecycle.correct_profit(order, "-12.5")
    assert result.order.profit == Decimal("-12.5")
    assert result.patch == {"profit": -12.5}
    with pytest.raises(ValidationError):
        lifecycle.correct_profit(order, float("nan"))


def test_pure_delete_any_state():
    for status in ("pending", "approved", "rejected"):
        order = normalize_order(_pending(status=status), record_id="o1")
        assert lifecycle.delete(order).order is order


def test_controller_approve_writes_statement_and_status():
    controller, orders, statements = _controller({"o1": _pending()})
    result = controller.approve("o1")

    assert result.statement.id == "s1"
    assert orders.records["o1"]["status"] == "approved"
    assert orders.records["o1"]["profit"] == 1656.9
    assert len(statements.records) == 1
    assert statements.records["s1"]["approvedAt"] == 5000
    assert controller.get("o1").status is OrderStatus.approved


def test_controller_approve_twice_single_statement():
    controller, orders, statements = _controller({"o1": _pending()})
    controller.approve("o1")
    second = controller.approve("o1")
    assert not second.changed
    assert len(statements.records) == 1
    assert len(orders.puts) == 1


def test_controller_retry_after_failed_status_write():
    controller, orders, statements = _controller({"o1": _pending()})
    orders.fail_put = True
    with pytest.raises(StoreUnavailableError):
        controller.approve("o1")
    assert len(statements.records) == 1
    assert orders.records["o1"]["status"] == "pending"

    orders.fail_put = False
    controller.approve("o1")
    assert len(statements.records) == 1
    assert orders.records["o1"]["status"] == "approved"


def test_controller_reject_then_approve():
    controller, orders, statements = _controller({"o1": _pending()})
    controller.reject("o1")
    with pytest.raises(InvalidTransitionError):
        controller.approve("o1")
    assert orders.records["o1"]["status"] == "rejected"
    assert statements.records == {}


def test_controller_unknown_order():
    controller, _, _ = _controller({})
    with pytest.raises(OrderNotFoundError):
        controller.approve("missing")
    with pytest.raises(OrderNotFoundError):
        controller.delete("missing")


def test_controller_invalid_record_cannot_transition_but_can_be_deleted():
    controller, orders, _ = _controller({"bad": _pending(price=-1), "o2": _pending()})
    assert [o.id for o in controller.orders] == ["o2"]
    assert list(controller.invalid_records) == ["bad"]
    with pytest.raises(ValidationError):
        controller.approve("bad")

    controller.delete("bad")
    assert "bad" not in orders.records
    assert controller.invalid_records == {}


def test_controller_delete_keeps_statements():
    controller, orders, statements = _controller({"o1": _pending()})
    controller.approve("o1")
    controller.delete("o1")
    assert orders.records == {}
    assert len(statements.records) == 1
    with pytest.raises(OrderNotFoundError):
        controller.get("o1")


def test_controller_sees_new_snapshots():
    controller, orders, _ = _controller({})
    record_id = orders.create(_pending())
    assert controller.get(record_id).product == "20x Ruby Keys"


def test_controller_correct_profit_does_not_touch_status():
    controller, orders, _ = _controller({"o1": _pending()})
    controller.correct_profit("o1", 100)
    assert orders.records["o1"]["profit"] == 100
    assert orders.records["o1"]["status"] == "pending"
    assert controller.get("o1").display_profit == Decimal("100")


def test_controller_close_unsubscribes():
    controller, orders, _ = _controller({})
    controller.close()
    assert orders.listeners == []
