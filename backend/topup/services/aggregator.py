"""
订单统计服务

把订单（或账单）集合折叠成汇总统计、按商品分组的利润分析和时间窗口利润。

所有函数都是纯函数：
- 不读系统时钟，参考时间由调用方传入（毫秒）
- 不做 I/O，不修改入参
- 汇总利润一律按 price - cost 重新计算，不累加订单上手工修正的 profit 字段

“今天”“本月”按本地日历判断（tz 为店铺时区，None 表示进程本地时区），
不是滚动的 24 小时窗口；只有 last7days 是滚动窗口。
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Protocol

from topup.enums import OrderStatus, TimeWindow

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_WEEK_MS = 7 * 24 * 60 * 60 * 1000


class FinancialRecord(Protocol):
    """Order 与 Statement 共有的统计字段"""
    product: str
    price: Decimal
    cost: Decimal
    timestamp: int

    @property
    def status(self) -> OrderStatus: ...


@dataclass(frozen=True)
class Stats:
    total_orders: int = 0
    pending_orders: int = 0
    approved_orders: int = 0
    rejected_orders: int = 0
    total_revenue: Decimal = _ZERO
    total_cost: Decimal = _ZERO
    total_profit: Decimal = _ZERO
    spent_today: Decimal = _ZERO
    monthly_spending: Decimal = _ZERO


@dataclass(frozen=True)
class ProductBreakdown:
    product: str
    count: int
    total_revenue: Decimal
    total_cost: Decimal
    total_profit: Decimal
    average_profit: Decimal
    profit_margin: Decimal
    roi: Decimal


@dataclass(frozen=True)
class Overview:
    """
    总览：基于账单的整体经营数据

    top_product 为利润最高且利润为正的商品，没有时为空字符串。
    """
    total_revenue: Decimal
    total_spending: Decimal
    total_profit: Decimal
    profit_margin: Decimal
    roi: Decimal
    total_orders: int
    avg_order_value: Decimal
    today_profit: Decimal
    weekly_profit: Decimal
    monthly_profit: Decimal
    top_product: str
    top_product_profit: Decimal


def _local_date(timestamp_ms: int, tz: tzinfo | None) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz).date()


def _same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)


def _ratio_percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return _ZERO
    return numerator / denominator * _HUNDRED


def compute_stats(
    records: Iterable[FinancialRecord], reference_time: int, tz: tzinfo | None = None
) -> Stats:
    """
    单次遍历计算汇总统计

    Args:
        records: 订单或账单
        reference_time: 参考时间（毫秒）
        tz: 日历判断所用时区

    Returns:
        Stats，total_profit 恒等于 total_revenue - total_cost
    """
    ref_day = _local_date(reference_time, tz)
    counts = {status: 0 for status in OrderStatus}
    total = 0
    revenue = cost = spent_today = monthly = _ZERO

    for record in records:
        total += 1
        counts[record.status] += 1
        revenue += record.price
        cost += record.cost

        day = _local_date(record.timestamp, tz)
        if day == ref_day:
            spent_today += record.cost
        if _same_month(day, ref_day):
            monthly += record.cost

    return Stats(
        total_orders=total,
        pending_orders=counts[OrderStatus.pending],
        approved_orders=counts[OrderStatus.approved],
        rejected_orders=counts[OrderStatus.rejected],
        total_revenue=revenue,
        total_cost=cost,
        total_profit=revenue - cost,
        spent_today=spent_today,
        monthly_spending=monthly,
    )


def compute_product_breakdown(records: Iterable[FinancialRecord]) -> list[ProductBreakdown]:
    """
    按商品名分组统计

    商品名精确匹配（不忽略大小写和空白）。结果按 total_profit 降序，
    利润相同的商品保持首次出现的顺序。
    """
    groups: dict[str, list[Decimal]] = {}  # product -> [count, revenue, cost]
    for record in records:
        acc = groups.setdefault(record.product, [_ZERO, _ZERO, _ZERO])
        acc[0] += 1
        acc[1] += record.price
        acc[2] += record.cost

    rows = []
    for product, (count, revenue, cost) in groups.items():
        profit = revenue - cost
        rows.append(
            ProductBreakdown(
                product=product,
                count=int(count),
                total_revenue=revenue,
                total_cost=cost,
                total_profit=profit,
                average_profit=profit / count,
                profit_margin=_ratio_percent(profit, revenue),
                roi=_ratio_percent(profit, cost),
            )
        )
    # sorted 是稳定排序，reverse=True 时相等元素仍保持原顺序
    return sorted(rows, key=lambda row: row.total_profit, reverse=True)


def in_window(
    timestamp: int, window: TimeWindow, reference_time: int, tz: tzinfo | None = None
) -> bool:
    if window is TimeWindow.last7days:
        return timestamp >= reference_time - _WEEK_MS
    day = _local_date(timestamp, tz)
    ref_day = _local_date(reference_time, tz)
    if window is TimeWindow.today:
        return day == ref_day
    return _same_month(day, ref_day)


def compute_time_window(
    records: Iterable[FinancialRecord],
    window: TimeWindow | str,
    reference_time: int,
    tz: tzinfo | None = None,
) -> Decimal:
    """
    时间窗口内的利润合计 Σ(price - cost)

    Raises:
        ValueError: 未知窗口类型
    """
    window = TimeWindow(window)
    return sum(
        (
            record.price - record.cost
            for record in records
            if in_window(record.timestamp, window, reference_time, tz)
        ),
        _ZERO,
    )


def compute_overview(
    records: Iterable[FinancialRecord], reference_time: int, tz: tzinfo | None = None
) -> Overview:
    """基于账单的总览（总额、利润率、ROI、各时间窗口利润、最赚钱商品）"""
    records = list(records)
    stats = compute_stats(records, reference_time, tz)
    breakdown = compute_product_breakdown(records)

    top = breakdown[0] if breakdown and breakdown[0].total_profit > 0 else None
    count = stats.total_orders
    return Overview(
        total_revenue=stats.total_revenue,
        total_spending=stats.total_cost,
        total_profit=stats.total_profit,
        profit_margin=_ratio_percent(stats.total_profit, stats.total_revenue),
        roi=_ratio_percent(stats.total_profit, stats.total_cost),
        total_orders=count,
        avg_order_value=stats.total_revenue / count if count else _ZERO,
        today_profit=compute_time_window(records, TimeWindow.today, reference_time, tz),
        weekly_profit=compute_time_window(records, TimeWindow.last7days, reference_time, tz),
        monthly_profit=compute_time_window(records, TimeWindow.thisMonth, reference_time, tz),
        top_product=top.product if top else "",
        top_product_profit=top.total_profit if top else _ZERO,
    )
