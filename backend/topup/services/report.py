"""
报表导出

- 经营总览：两列（Metric, Value）
- 订单成本明细：每个订单一行
"""
from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from datetime import datetime, tzinfo

from topup.services.aggregator import Overview
from topup.services.domain import Order, UidIdentity
from topup.services.currency import quantize


def overview_rows(overview: Overview, currency: str = "BDT") -> list[tuple[str, str]]:
    def money(amount) -> str:
        return f"{quantize(amount)} {currency}"

    def percent(amount) -> str:
        return f"{quantize(amount)}%"

    return [
        ("Total Profit", money(overview.total_profit)),
        ("Total Spending", money(overview.total_spending)),
        ("Total Revenue", money(overview.total_revenue)),
        ("Profit Margin", percent(overview.profit_margin)),
        ("ROI", percent(overview.roi)),
        ("Total Orders", str(overview.total_orders)),
        ("Average Order Value", money(overview.avg_order_value)),
        ("Today's Profit", money(overview.today_profit)),
        ("Weekly Profit", money(overview.weekly_profit)),
        ("Monthly Profit", money(overview.monthly_profit)),
        ("Top Product", overview.top_product),
        ("Top Product Profit", money(overview.top_product_profit)),
    ]


def overview_csv(overview: Overview, currency: str = "BDT") -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(("Metric", "Value"))
    writer.writerows(overview_rows(overview, currency))
    return buffer.getvalue()


ORDER_COST_HEADERS = (
    "Order ID",
    "Product",
    "Cost",
    "Price",
    "Customer Name",
    "Customer Email",
    "Transaction ID",
    "Date",
    "Status",
    "UID",
)


def order_cost_rows(orders: Iterable[Order], tz: tzinfo | None = None) -> list[tuple[str, ...]]:
    """订单成本明细，最新的在前"""
    rows = []
    for order in sorted(orders, key=lambda o: o.timestamp, reverse=True):
        identity = order.customer_identity
        rows.append(
            (
                order.id,
                order.product,
                str(quantize(order.cost)),
                str(quantize(order.price)),
                order.customer_name,
                order.customer_email,
                order.transaction_id or "N/A",
                datetime.fromtimestamp(order.timestamp / 1000, tz=tz).date().isoformat(),
                order.status.value,
                identity.uid if isinstance(identity, UidIdentity) else "N/A",
            )
        )
    return rows


def order_costs_csv(orders: Iterable[Order], tz: tzinfo | None = None) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(ORDER_COST_HEADERS)
    writer.writerows(order_cost_rows(orders, tz))
    return buffer.getvalue()
