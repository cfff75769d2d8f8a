"""
订单规范化服务

把存储层读出的原始订单文档（字段可选、命名不统一）转换成规范的 Order，
以及把 Order 序列化回存储层的文档格式。

规则：
- 缺失的可选字段一律使用默认值，不报错
- 供应商字段优先：neteaseEmail / neteasePassword 优先于 email / password
- price / cost 为负数或非有限数值时抛出 ValidationError
- 文档里的 null（前端写入 NaN 时 JSON 会变成 null）按 0 处理
- 状态 "completed" 与 "approved" 等价，写回时统一使用 "approved"
- 金额统一保留两位小数（ROUND_HALF_UP），订单和账单使用同一精度
- 商品名原样保留（不去空白、不改大小写），按精确字符串分组
- 时间戳超出可表示的日期范围时抛出 ValidationError
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from topup.api.errors import ValidationError
from topup.enums import OrderStatus
from topup.services.currency import quantize
from topup.services.domain import (
    UNKNOWN_CUSTOMER_EMAIL,
    UNKNOWN_CUSTOMER_NAME,
    UNKNOWN_PRODUCT,
    CredentialIdentity,
    Order,
    Statement,
    UidIdentity,
)

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


@dataclass
class NormalizedSnapshot:
    """一次完整快照的规范化结果：合法订单 + 被拒绝的记录"""
    orders: list[Order] = field(default_factory=list)
    rejected: dict[str, ValidationError] = field(default_factory=dict)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any, *, field_name: str, allow_negative: bool = False) -> Decimal:
    """
    解析金额字段

    Args:
        value: 原始值（int / float / Decimal / 数字字符串 / None）
        field_name: 字段名，用于错误信息
        allow_negative: 是否允许负数（手工修正的利润允许为负）

    Returns:
        Decimal 金额；空值返回 0

    Raises:
        ValidationError: 非数字、非有限数值或不允许的负数
    """
    if _is_blank(value):
        return _ZERO
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number, got a boolean", field=field_name)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"{field_name} must be finite", field=field_name)
        # str() 保留最短十进制表示，615.6 -> Decimal("615.6")
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{field_name} is not a number: {value!r}", field=field_name)
    else:
        raise ValidationError(
            f"{field_name} has unsupported type {type(value).__name__}", field=field_name
        )

    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be finite", field=field_name)
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{field_name} must be >= 0, got {amount}", field=field_name)
    return amount


def parse_money(value: Any, *, field_name: str, allow_negative: bool = False) -> Decimal:
    """解析金额并保留两位小数"""
    return quantize(parse_amount(value, field_name=field_name, allow_negative=allow_negative))


def _parse_timestamp(raw: Mapping[str, Any]) -> int:
    value = raw.get("timestamp")
    if not _is_blank(value):
        return _checked_timestamp(int(parse_amount(value, field_name="timestamp")))

    date_value = raw.get("date")
    if isinstance(date_value, str) and date_value.strip():
        try:
            parsed = datetime.fromisoformat(date_value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"date is not ISO-8601: {date_value!r}", field="date")
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000)
    return 0


def _checked_timestamp(ts: int) -> int:
    try:
        datetime.fromtimestamp(ts / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise ValidationError(f"timestamp out of range: {ts}", field="timestamp")
    return ts


def _parse_status(value: Any) -> OrderStatus:
    if _is_blank(value):
        return OrderStatus.pending
    if isinstance(value, OrderStatus):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"status must be a string, got {value!r}", field="status")
    try:
        return OrderStatus.parse(value)
    except ValueError as e:
        raise ValidationError(str(e), field="status")


def _product(raw: Mapping[str, Any]) -> str:
    value = raw.get("product")
    if isinstance(value, str) and value.strip():
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return UNKNOWN_PRODUCT


def _text(raw: Mapping[str, Any], *keys: str) -> str | None:
    """按顺序取第一个非空字段，数字类型的 UID 也转成字符串"""
    for key in keys:
        value = raw.get(key)
        if _is_blank(value) or isinstance(value, bool):
            continue
        if isinstance(value, (str, int)):
            return str(value).strip()
    return None


def normalize_order(raw: Mapping[str, Any], record_id: str | None = None) -> Order:
    """
    原始订单文档 -> 规范订单

    Args:
        raw: 存储层读出的原始字段
        record_id: 存储层的记录 ID；为空时使用 raw["id"]

    Returns:
        Order: 规范化订单

    Raises:
        ValidationError: 金额、时间戳或状态不合法
    """
    if not isinstance(raw, Mapping):
        raise ValidationError(f"order record must be a mapping, got {type(raw).__name__}")

    price = parse_money(raw.get("price"), field_name="price")
    cost = parse_money(raw.get("cost"), field_name="cost")
    profit_value = raw.get("profit")
    profit = (
        None
        if _is_blank(profit_value)
        else parse_money(profit_value, field_name="profit", allow_negative=True)
    )

    email = _text(raw, "neteaseEmail", "email")
    password = _text(raw, "neteasePassword", "password")
    uid = _text(raw, "uid")
    if email:
        identity: CredentialIdentity | UidIdentity | None = CredentialIdentity(email=email, password=password)
    elif uid:
        identity = UidIdentity(uid=uid)
    else:
        identity = None

    return Order(
        id=str(record_id if record_id is not None else raw.get("id") or ""),
        product=_product(raw),
        price=price,
        cost=cost,
        profit=profit,
        status=_parse_status(raw.get("status")),
        timestamp=_parse_timestamp(raw),
        customer_identity=identity,
        transaction_id=_text(raw, "transactionId"),
        customer_name=_text(raw, "customerName") or UNKNOWN_CUSTOMER_NAME,
        customer_email=_text(raw, "customerEmail") or UNKNOWN_CUSTOMER_EMAIL,
        customer_phone=_text(raw, "customerPhone"),
        payment_method=_text(raw, "paymentMethod"),
    )


def normalize_snapshot(snapshot: Mapping[str, Any]) -> NormalizedSnapshot:
    """
    规范化一次完整快照

    单条记录校验失败只拒绝该记录，其余记录照常处理。
    """
    result = NormalizedSnapshot()
    for record_id, raw in snapshot.items():
        try:
            result.orders.append(normalize_order(raw, record_id=record_id))
        except ValidationError as e:
            logger.warning("Rejected order record %s: %s", record_id, e.message)
            result.rejected[record_id] = e
    return result


def to_json_number(amount: Decimal) -> int | float:
    """Decimal -> JSON 数字（整数保持整数）"""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def to_store_patch(order: Order) -> dict[str, Any]:
    """
    规范订单 -> 存储层文档字段

    price / cost / product / status 可以无损往返；
    状态统一写成规范拼写（已完成写作 "approved"）。
    """
    patch: dict[str, Any] = {
        "product": order.product,
        "price": to_json_number(order.price),
        "cost": to_json_number(order.cost),
        "status": order.status.value,
        "timestamp": order.timestamp,
        "customerName": order.customer_name,
        "customerEmail": order.customer_email,
    }
    if order.profit is not None:
        patch["profit"] = to_json_number(order.profit)

    identity = order.customer_identity
    if isinstance(identity, UidIdentity):
        patch["uid"] = identity.uid
    elif isinstance(identity, CredentialIdentity):
        patch["neteaseEmail"] = identity.email
        if identity.password is not None:
            patch["neteasePassword"] = identity.password

    optional = {
        "transactionId": order.transaction_id,
        "customerPhone": order.customer_phone,
        "paymentMethod": order.payment_method,
    }
    patch.update({k: v for k, v in optional.items() if v is not None})
    return patch


def statement_to_record(statement: Statement) -> dict[str, Any]:
    """账单 -> 账单存储记录"""
    record: dict[str, Any] = {
        "orderId": statement.order_id,
        "product": statement.product,
        "price": to_json_number(statement.price),
        "cost": to_json_number(statement.cost),
        "profit": to_json_number(statement.profit),
        "timestamp": statement.timestamp,
    }
    if statement.approved_at is not None:
        record["approvedAt"] = statement.approved_at
    return record


def statement_from_record(raw: Mapping[str, Any], record_id: str | None = None) -> Statement:
    """账单存储记录 -> 账单"""
    price = parse_money(raw.get("price"), field_name="price")
    cost = parse_money(raw.get("cost"), field_name="cost")
    approved_at = raw.get("approvedAt")
    return Statement(
        id=str(record_id if record_id is not None else raw.get("id") or "") or None,
        order_id=str(raw.get("orderId") or ""),
        product=_product(raw),
        price=price,
        cost=cost,
        profit=price - cost,
        timestamp=_parse_timestamp(raw),
        approved_at=None if _is_blank(approved_at) else int(parse_amount(approved_at, field_name="approvedAt")),
    )
