from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from topup.enums import OrderStatus, TimeWindow
from topup.services.aggregator import (
    compute_overview,
    compute_product_breakdown,
    compute_stats,
    compute_time_window,
    in_window,
)
from topup.services.domain import Order, Statement
from topup.services.lifecycle import OrderLifecycleController
from topup.services.normalizer import statement_from_record

from fakes import MemoryOrderStore, MemoryStatementStore

UTC = timezone.utc
DHAKA = ZoneInfo("Asia/Dhaka")
HOUR = 60 * 60 * 1000
DAY = 24 * HOUR


def _ms(*args, tz=UTC) -> int:
    return int(datetime(*args, tzinfo=tz).timestamp() * 1000)


def _order(product="Monthly Card", price="850", cost="233.2", status=OrderStatus.approved, ts=0, profit=None):
    return Order(
        id=f"{product}-{ts}",
        product=product,
        price=Decimal(price),
        cost=Decimal(cost),
        status=status,
        timestamp=ts,
        profit=None if profit is None else Decimal(profit),
    )


REF = _ms(2024, 6, 10, 12, 0)


def test_empty_stats_are_zero():
    stats = compute_stats([], REF, UTC)
    assert stats.total_orders == 0
    assert stats.total_revenue == 0
    assert stats.total_profit == 0
    assert stats.spent_today == 0


def test_single_order_profit():
    stats = compute_stats([_order(price="1490", cost="615.6", ts=REF)], REF, UTC)
    assert stats.total_profit == Decimal("874.4")
    assert stats.total_profit == stats.total_revenue - stats.total_cost


def test_status_counts_cover_every_order():
    orders = [
        _order(status=OrderStatus.pending, ts=REF),
        _order(status=OrderStatus.approved, ts=REF),
        _order(status=OrderStatus.approved, ts=REF),
        _order(status=OrderStatus.rejected, ts=REF),
    ]
    stats = compute_stats(orders, REF, UTC)
    assert stats.total_orders == 4
    assert (stats.pending_orders, stats.approved_orders, stats.rejected_orders) == (1, 2, 1)
    # every order counts towards totals regardless of status
    assert stats.total_revenue == Decimal("3400")


def test_profit_override_never_affects_aggregates():
    orders = [_order(price="100", cost="40", profit="999", ts=REF)]
    assert compute_stats(orders, REF, UTC).total_profit == Decimal("60")
    assert compute_product_breakdown(orders)[0].total_profit == Decimal("60")
    assert compute_time_window(orders, "today", REF, UTC) == Decimal("60")


def test_order_25_hours_ago_is_not_today():
    orders = [_order(cost="100", ts=REF), _order(cost="50", ts=REF - 25 * HOUR)]
    stats = compute_stats(orders, REF, UTC)
    assert stats.spent_today == Decimal("100")
    assert stats.monthly_spending == Decimal("150")


def test_today_is_calendar_day_not_rolling():
    ref = _ms(2024, 6, 10, 1, 0)
    late_yesterday = _ms(2024, 6, 9, 23, 0)
    early_today = _ms(2024, 6, 10, 0, 0)
    orders = [_order(cost="10", ts=late_yesterday), _order(cost="20", ts=early_today)]
    stats = compute_stats(orders, ref, UTC)
    assert stats.spent_today == Decimal("20")
    assert not in_window(late_yesterday, TimeWindow.today, ref, UTC)
    assert in_window(late_yesterday, TimeWindow.last7days, ref, UTC)


def test_calendar_follows_store_timezone():
    # 20:00 UTC on June 9th is 02:00 June 10th in Dhaka
    ts = _ms(2024, 6, 9, 20, 0)
    ref = _ms(2024, 6, 10, 12, 0)
    assert in_window(ts, TimeWindow.today, ref, DHAKA)
    assert not in_window(ts, TimeWindow.today, ref, UTC)


def test_month_requires_same_year():
    orders = [
        _order(cost="1", ts=_ms(2024, 6, 1)),
        _order(cost="2", ts=_ms(2024, 5, 31, 23, 59)),
        _order(cost="4", ts=_ms(2023, 6, 15)),
    ]
    stats = compute_stats(orders, REF, UTC)
    assert stats.monthly_spending == Decimal("1")


def test_last7days_boundary_is_inclusive():
    week = 7 * DAY
    assert in_window(REF - week, TimeWindow.last7days, REF, UTC)
    assert not in_window(REF - week - 1, TimeWindow.last7days, REF, UTC)


def test_time_window_sums_profit():
    records = [
        _order(price="100", cost="40", ts=REF),
        _order(price="100", cost="70", ts=REF - 3 * DAY),
        _order(price="100", cost="90", ts=REF - 20 * DAY),
    ]
    assert compute_time_window(records, TimeWindow.today, REF, UTC) == Decimal("60")
    assert compute_time_window(records, "last7days", REF, UTC) == Decimal("90")
    assert compute_time_window(records, "thisMonth", REF, UTC) == Decimal("90")


def test_unknown_window_rejected():
    with pytest.raises(ValueError):
        compute_time_window([], "lastYear", REF, UTC)


def test_breakdown_reconciles_with_stats():
    records = [
        _order(product="A", price="100", cost="30", ts=REF),
        _order(product="B", price="50", cost="45", ts=REF),
        _order(product="A", price="120", cost="40", ts=REF),
        _order(product="C", price="10", cost="20", ts=REF),
    ]
    rows = compute_product_breakdown(records)
    stats = compute_stats(records, REF, UTC)
    assert sum(row.count for row in rows) == len(records)
    assert sum((row.total_profit for row in rows), Decimal("0")) == stats.total_profit
    assert [row.product for row in rows] == ["A", "B", "C"]

    a = rows[0]
    assert a.count == 2
    assert a.total_profit == Decimal("150")
    assert a.average_profit == Decimal("75")
    assert a.profit_margin == Decimal("150") / Decimal("220") * 100
    assert a.roi == Decimal("150") / Decimal("70") * 100


def test_breakdown_ties_keep_first_seen_order():
    records = [
        _order(product="second", price="10", cost="5"),
        _order(product="first", price="20", cost="15"),
        _order(product="top", price="100", cost="5"),
    ]
    assert [row.product for row in compute_product_breakdown(records)] == ["top", "second", "first"]


def test_breakdown_is_case_sensitive():
    rows = compute_product_breakdown([_order(product="Gems"), _order(product="gems")])
    assert len(rows) == 2


def test_margin_and_roi_zero_guards():
    rows = compute_product_breakdown(
        [_order(product="free", price="0", cost="10"), _order(product="gift", price="10", cost="0")]
    )
    by_name = {row.product: row for row in rows}
    assert by_name["free"].profit_margin == 0
    assert by_name["free"].roi == Decimal("-100")
    assert by_name["gift"].roi == 0
    assert by_name["gift"].profit_margin == Decimal("100")


def test_overview_totals_and_top_product():
    statements = [
        Statement(order_id="1", product="A", price=Decimal("100"), cost=Decimal("40"), profit=Decimal("60"), timestamp=REF),
        Statement(order_id="2", product="B", price=Decimal("300"), cost=Decimal("100"), profit=Decimal("200"), timestamp=REF - 2 * DAY),
    ]
    overview = compute_overview(statements, REF, UTC)
    assert overview.total_revenue == Decimal("400")
    assert overview.total_spending == Decimal("140")
    assert overview.total_profit == Decimal("260")
    assert overview.total_orders == 2
    assert overview.avg_order_value == Decimal("200")
    assert overview.today_profit == Decimal("60")
    assert overview.weekly_profit == Decimal("260")
    assert overview.monthly_profit == Decimal("260")
    assert overview.top_product == "B"
    assert overview.top_product_profit == Decimal("200")
    assert overview.profit_margin == Decimal("260") / Decimal("400") * 100


def test_overview_without_profitable_product():
    overview = compute_overview([_order(price="10", cost="20", ts=REF)], REF, UTC)
    assert overview.top_product == ""
    assert overview.top_product_profit == 0

    empty = compute_overview([], REF, UTC)
    assert empty.total_orders == 0
    assert empty.avg_order_value == 0
    assert empty.roi == 0
    assert empty.profit_margin == 0


def test_two_order_scenario_with_one_approval():
    order_store = MemoryOrderStore(
        {
            "o1": {"product": "10x Ruby Keys", "price": 1490, "cost": 615.6, "status": "pending", "timestamp": REF},
            "o2": {"product": "20x Ruby Keys", "price": 2890, "cost": 1233.1, "status": "pending", "timestamp": REF},
        }
    )
    statement_store = MemoryStatementStore()
    controller = OrderLifecycleController(order_store, statement_store, clock=lambda: REF)
    controller.approve("o1")

    stats = compute_stats(controller.orders, REF, UTC)
    assert stats.total_revenue == Decimal("4380")
    assert stats.total_cost == Decimal("1848.7")
    assert stats.total_profit == Decimal("2531.3")
    assert stats.approved_orders == 1
    assert stats.pending_orders == 1

    statements = [statement_from_record(raw) for raw in statement_store.list()]
    assert len(statements) == 1
    assert statements[0].order_id == "o1"
    assert statements[0].profit == Decimal("874.4")


def test_breakdown_keeps_padded_names_apart():
    order_store = MemoryOrderStore(
        {
            "o1": {"product": "Monthly Card", "price": 850, "cost": 233.2, "status": "approved", "timestamp": REF},
            "o2": {"product": "Monthly Card ", "price": 850, "cost": 233.2, "status": "approved", "timestamp": REF},
        }
    )
    controller = OrderLifecycleController(order_store, MemoryStatementStore(), clock=lambda: REF)
    rows = compute_product_breakdown(controller.orders)
    assert [row.product for row in rows] == ["Monthly Card", "Monthly Card "]


def test_out_of_range_timestamp_does_not_break_stats():
    order_store = MemoryOrderStore(
        {
            "ok": {"product": "A", "price": 100, "cost": 40, "timestamp": REF},
            "micros": {"product": "A", "price": 100, "cost": 40, "timestamp": REF * 1000},
        }
    )
    controller = OrderLifecycleController(order_store, MemoryStatementStore(), clock=lambda: REF)
    assert list(controller.invalid_records) == ["micros"]
    stats = compute_stats(controller.orders, REF, UTC)
    assert stats.total_orders == 1
    assert compute_time_window(controller.orders, "today", REF, UTC) == Decimal("60")
