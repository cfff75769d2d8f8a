"""
订单管理路由模块

后台使用的订单审核和经营统计接口：
- 订单列表、审批、拒绝、删除、手工修正利润
- 汇总统计、商品利润分析、时间窗口利润
- 经营总览（含 CSV 导出）、订单成本明细导出和账单历史

统计的“今天”“本月”按店铺时区（settings.STORE_TIMEZONE）的日历计算。
"""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query
from fastapi.responses import Response

from topup.api.deps import LifecycleDep, StatementStoreDep
from topup.api.errors import ValidationError
from topup.api.schemas import (
    ApiEnvelope,
    OrderPublic,
    OrdersData,
    OverviewData,
    ProductBreakdownPublic,
    ProductsData,
    ProfitCorrectionRequest,
    ProfitWindowData,
    StatementPublic,
    StatementsData,
    StatsData,
    TransitionData,
)
from topup.core.config import settings
from topup.enums import OrderStatus, StatsSource, TimeWindow
from topup.models import now_ms
from topup.services import aggregator
from topup.services.domain import Statement
from topup.services.normalizer import statement_from_record
from topup.services.report import order_costs_csv, overview_csv
from topup.store.base import StatementStore

router = APIRouter(prefix="/admin", tags=["admin"])


def _load_statements(store: StatementStore) -> list[Statement]:
    return [statement_from_record(raw) for raw in store.list()]


@router.get("/orders", response_model=ApiEnvelope)
def list_orders(lifecycle: LifecycleDep, status: str | None = Query(default=None)) -> ApiEnvelope:
    """
    订单列表（最新的在前）

    请求路径: GET /api/v1/admin/orders?status=pending

    status 同时接受 "approved" 和 "completed"。
    """
    orders = lifecycle.orders
    if status:
        try:
            wanted = OrderStatus.parse(status)
        except ValueError as e:
            raise ValidationError(str(e), field="status")
        orders = [order for order in orders if order.status is wanted]

    orders.sort(key=lambda order: order.timestamp, reverse=True)
    data = OrdersData(
        data=[OrderPublic.from_order(order) for order in orders],
        count=len(orders),
        invalid_ids=sorted(lifecycle.invalid_records),
    )
    return ApiEnvelope(data=data)


@router.get("/orders/export")
def export_order_costs(lifecycle: LifecycleDep) -> Response:
    """
    导出订单成本明细 CSV（每个订单一行，最新的在前）

    请求路径: GET /api/v1/admin/orders/export
    """
    day = datetime.fromtimestamp(now_ms() / 1000, tz=settings.store_tz).date().isoformat()
    return Response(
        content=order_costs_csv(lifecycle.orders, settings.store_tz),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="detailed-costs-{day}.csv"'},
    )


@router.get("/stats", response_model=ApiEnvelope)
def stats(lifecycle: LifecycleDep) -> ApiEnvelope:
    """
    订单汇总统计

    请求路径: GET /api/v1/admin/stats
    """
    result = aggregator.compute_stats(lifecycle.orders, now_ms(), settings.store_tz)
    return ApiEnvelope(data=StatsData.from_stats(result))


@router.get("/products", response_model=ApiEnvelope)
def products(
    lifecycle: LifecycleDep,
    statement_store: StatementStoreDep,
    source: StatsSource = StatsSource.statements,
) -> ApiEnvelope:
    """
    按商品统计利润

    请求路径: GET /api/v1/admin/products?source=statements

    source=orders 时只统计已完成的订单。
    """
    if source is StatsSource.orders:
        records = [order for order in lifecycle.orders if order.status is OrderStatus.approved]
    else:
        records = _load_statements(statement_store)

    rows = aggregator.compute_product_breakdown(records)
    data = ProductsData(
        source=source.value,
        data=[ProductBreakdownPublic.from_breakdown(row) for row in rows],
    )
    return ApiEnvelope(data=data)


@router.get("/profit", response_model=ApiEnvelope)
def profit(statement_store: StatementStoreDep, window: TimeWindow = TimeWindow.today) -> ApiEnvelope:
    """
    时间窗口内的利润（基于账单）

    请求路径: GET /api/v1/admin/profit?window=last7days
    """
    reference_time = now_ms()
    total = aggregator.compute_time_window(
        _load_statements(statement_store), window, reference_time, settings.store_tz
    )
    return ApiEnvelope(
        data=ProfitWindowData(window=window, profit=total, reference_time=reference_time)
    )


@router.get("/overview", response_model=ApiEnvelope)
def overview(statement_store: StatementStoreDep) -> ApiEnvelope:
    """
    经营总览（基于账单）

    请求路径: GET /api/v1/admin/overview
    """
    result = aggregator.compute_overview(
        _load_statements(statement_store), now_ms(), settings.store_tz
    )
    return ApiEnvelope(data=OverviewData.from_overview(result))


@router.get("/overview/export")
def export_overview(statement_store: StatementStoreDep) -> Response:
    """
    导出经营总览 CSV

    请求路径: GET /api/v1/admin/overview/export
    """
    reference_time = now_ms()
    result = aggregator.compute_overview(
        _load_statements(statement_store), reference_time, settings.store_tz
    )
    day = datetime.fromtimestamp(reference_time / 1000, tz=settings.store_tz).date().isoformat()
    return Response(
        content=overview_csv(result, settings.CURRENCY),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="total-overview-{day}.csv"'},
    )


@router.get("/statements", response_model=ApiEnvelope)
def statements(statement_store: StatementStoreDep) -> ApiEnvelope:
    """
    账单历史（最新的在前）

    请求路径: GET /api/v1/admin/statements
    """
    items = _load_statements(statement_store)
    data = StatementsData(
        data=[StatementPublic.from_statement(item) for item in items],
        count=len(items),
    )
    return ApiEnvelope(data=data)


@router.post("/orders/{order_id}/approve", response_model=ApiEnvelope)
def approve_order(lifecycle: LifecycleDep, order_id: str) -> ApiEnvelope:
    """
    审批通过：写入账单并把订单标记为已完成

    请求路径: POST /api/v1/admin/orders/{order_id}/approve

    重复审批不会生成第二条账单，返回 changed=false。
    """
    transition = lifecycle.approve(order_id)
    return ApiEnvelope(data=TransitionData.from_transition(transition))


@router.post("/orders/{order_id}/reject", response_model=ApiEnvelope)
def reject_order(lifecycle: LifecycleDep, order_id: str) -> ApiEnvelope:
    """
    拒绝订单

    请求路径: POST /api/v1/admin/orders/{order_id}/reject
    """
    transition = lifecycle.reject(order_id)
    return ApiEnvelope(data=TransitionData.from_transition(transition))


@router.delete("/orders/{order_id}", response_model=ApiEnvelope)
def delete_order(lifecycle: LifecycleDep, order_id: str) -> ApiEnvelope:
    """
    删除订单（已写入的账单保留）

    请求路径: DELETE /api/v1/admin/orders/{order_id}
    """
    lifecycle.delete(order_id)
    return ApiEnvelope(data={"deleted": True, "id": order_id})


@router.patch("/orders/{order_id}/profit", response_model=ApiEnvelope)
def correct_profit(
    lifecycle: LifecycleDep, order_id: str, body: ProfitCorrectionRequest
) -> ApiEnvelope:
    """
    手工修正订单利润（只影响单条订单展示，不影响统计）

    请求路径: PATCH /api/v1/admin/orders/{order_id}/profit
    """
    transition = lifecycle.correct_profit(order_id, body.profit)
    return ApiEnvelope(data=TransitionData.from_transition(transition))
