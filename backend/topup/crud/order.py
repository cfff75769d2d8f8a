"""订单提交"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from topup.api.errors import AppError, product_not_found
from topup.core.config import settings
from topup.enums import OrderStatus, OrderType
from topup.models import now_ms
from topup.services.config_service import find_product
from topup.services.currency import apply_tax
from topup.services.normalizer import to_json_number
from topup.store.base import OrderStore

logger = logging.getLogger(__name__)


def submit(
    *,
    store: OrderStore,
    order_type: OrderType,
    product: str,
    customer_name: str,
    transaction_id: str,
    bkash_last_digits: str,
    uid: str | None = None,
    email: str | None = None,
    password: str | None = None,
    customer_phone: str = "",
    timestamp: int | None = None,
) -> str:
    """
    提交一笔待审核订单

    售价、成本取自价目表，售价加上税费后写入 price。

    Returns:
        新订单的记录 ID
    """
    found = find_product(product, order_type)
    if found is None:
        raise product_not_found(product)
    base_price, cost = found
    tax, total = apply_tax(base_price)

    if order_type is OrderType.uid and not uid:
        raise AppError(code=400201, message="UID is required for UID orders", status_code=400)
    if order_type is OrderType.in_game and not email:
        raise AppError(code=400202, message="Account email is required for in-game orders", status_code=400)

    ts = now_ms() if timestamp is None else timestamp
    name = customer_name.strip()
    record = {
        "uid": uid if order_type is OrderType.uid else None,
        "neteaseEmail": email if order_type is OrderType.in_game else None,
        "neteasePassword": password if order_type is OrderType.in_game else None,
        "product": product,
        "basePrice": to_json_number(base_price),
        "tax": to_json_number(tax),
        "price": to_json_number(total),
        "cost": to_json_number(cost),
        "customerName": name,
        "customerEmail": f"{name}@temp.com",
        "customerPhone": customer_phone.strip(),
        "transactionId": transaction_id.strip(),
        "bkashLastDigits": bkash_last_digits,
        "paymentMethod": settings.PAYMENT_METHOD,
        "status": OrderStatus.pending.value,
        "timestamp": ts,
        "date": datetime.fromtimestamp(ts / 1000, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
        "orderType": order_type.value,
    }
    record_id = store.create(record)
    logger.info("Order %s submitted: %s for %s %s", record_id, product, total, settings.CURRENCY)
    return record_id
