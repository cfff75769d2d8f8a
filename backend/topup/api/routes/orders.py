"""
下单路由模块

客户提交 bKash 付款信息后生成一笔待审核订单。
价格由服务端按价目表计算，客户端传入的金额不被采信。
"""
from __future__ import annotations

from fastapi import APIRouter

from topup import crud
from topup.api.deps import OrderStoreDep
from topup.api.schemas import ApiEnvelope, OrderSubmitData, OrderSubmitRequest
from topup.enums import OrderStatus

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=ApiEnvelope)
def submit_order(store: OrderStoreDep, body: OrderSubmitRequest) -> ApiEnvelope:
    """
    提交订单

    请求路径: POST /api/v1/orders

    Args:
        store: 订单存储
        body: 下单请求数据

    Returns:
        ApiEnvelope: 新订单 ID 和状态

    Raises:
        AppError: 商品不在价目表中（404201）
    """
    record_id = crud.submit_order(
        store=store,
        order_type=body.order_type,
        product=body.product,
        uid=body.uid,
        email=body.email,
        password=body.password,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        transaction_id=body.transaction_id,
        bkash_last_digits=body.bkash_last_digits,
    )
    return ApiEnvelope(data=OrderSubmitData(id=record_id, status=OrderStatus.pending))
