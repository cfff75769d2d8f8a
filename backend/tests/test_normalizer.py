from __future__ import annotations

from decimal import Decimal

import pytest

from topup.api.errors import ValidationError
from topup.enums import OrderStatus
from topup.services.domain import (
    UNKNOWN_CUSTOMER_EMAIL,
    UNKNOWN_CUSTOMER_NAME,
    UNKNOWN_PRODUCT,
    CredentialIdentity,
    Statement,
    UidIdentity,
)
from topup.services.normalizer import (
    normalize_order,
    normalize_snapshot,
    parse_amount,
    statement_from_record,
    statement_to_record,
    to_store_patch,
)


def _raw(**overrides):
    raw = {
        "product": "10x Ruby Keys",
        "price": 1490,
        "cost": 615.6,
        "status": "pending",
        "timestamp": 1717200000000,
        "customerName": "Rahim",
        "customerEmail": "Rahim@temp.com",
        "neteaseEmail": "player@example.com",
        "neteasePassword": "secret",
        "transactionId": "TX123",
        "paymentMethod": "bKash",
    }
    raw.update(overrides)
    return raw


def test_normalize_full_record():
    order = normalize_order(_raw(), record_id="o1")
    assert order.id == "o1"
    assert order.product == "10x Ruby Keys"
    assert order.price == Decimal("1490")
    assert order.cost == Decimal("615.6")
    assert order.derived_profit == Decimal("874.4")
    assert order.status is OrderStatus.pending
    assert order.timestamp == 1717200000000
    assert order.customer_identity == CredentialIdentity(email="player@example.com", password="secret")
    assert order.is_credential_purchase
    assert order.transaction_id == "TX123"
    assert order.payment_method == "bKash"
    assert order.profit is None


def test_missing_fields_get_defaults():
    order = normalize_order({}, record_id="empty")
    assert order.product == UNKNOWN_PRODUCT
    assert order.price == 0
    assert order.cost == 0
    assert order.status is OrderStatus.pending
    assert order.timestamp == 0
    assert order.customer_name == UNKNOWN_CUSTOMER_NAME
    assert order.customer_email == UNKNOWN_CUSTOMER_EMAIL
    assert order.customer_identity is None


def test_null_amount_is_zero():
    order = normalize_order(_raw(price=None, cost=""), record_id="o1")
    assert order.price == 0
    assert order.cost == 0


def test_completed_is_fulfilled():
    order = normalize_order(_raw(status="completed"), record_id="o1")
    assert order.status is OrderStatus.approved


def test_unknown_status_rejected():
    with pytest.raises(ValidationError) as exc:
        normalize_order(_raw(status="shipped"), record_id="o1")
    assert exc.value.field == "status"


def test_vendor_fields_win_over_generic():
    order = normalize_order(
        _raw(neteaseEmail="vendor@example.com", email="generic@example.com"), record_id="o1"
    )
    assert order.customer_identity.email == "vendor@example.com"

    order = normalize_order(
        _raw(neteaseEmail=None, neteasePassword=None, email="generic@example.com", password="pw"),
        record_id="o2",
    )
    assert order.customer_identity == CredentialIdentity(email="generic@example.com", password="pw")


def test_uid_identity_from_numeric_uid():
    order = normalize_order(_raw(neteaseEmail=None, neteasePassword=None, uid=12345678), record_id="o1")
    assert order.customer_identity == UidIdentity(uid="12345678")
    assert order.is_uid_purchase


@pytest.mark.parametrize(
    "value",
    [-1, "-5", "abc", float("nan"), float("inf"), "Infinity", True, [1]],
)
def test_invalid_price_rejected(value):
    with pytest.raises(ValidationError) as exc:
        normalize_order(_raw(price=value), record_id="o1")
    assert exc.value.field == "price"
    assert exc.value.code == 422101


def test_negative_cost_rejected():
    with pytest.raises(ValidationError):
        normalize_order(_raw(cost=-0.01), record_id="o1")


def test_profit_override_may_be_negative():
    order = normalize_order(_raw(profit=-20), record_id="o1")
    assert order.profit == Decimal("-20")
    assert order.display_profit == Decimal("-20")


def test_zero_profit_override_falls_back_to_derived():
    order = normalize_order(_raw(profit=0), record_id="o1")
    assert order.display_profit == order.derived_profit


def test_timestamp_falls_back_to_iso_date():
    order = normalize_order(_raw(timestamp=None, date="2024-01-01T00:00:00.000Z"), record_id="o1")
    assert order.timestamp == 1704067200000


def test_bad_iso_date_rejected():
    with pytest.raises(ValidationError):
        normalize_order(_raw(timestamp=None, date="yesterday"), record_id="o1")


def test_parse_amount_strings():
    assert parse_amount(" 12.50 ", field_name="price") == Decimal("12.50")
    assert parse_amount("-3", field_name="profit", allow_negative=True) == Decimal("-3")


def test_snapshot_rejects_only_bad_records():
    result = normalize_snapshot({"good": _raw(), "bad": _raw(price=-10), "also_good": {}})
    assert [o.id for o in result.orders] == ["good", "also_good"]
    assert list(result.rejected) == ["bad"]
    assert result.rejected["bad"].field == "price"


def test_store_patch_round_trip():
    order = normalize_order(_raw(status="completed", profit=900), record_id="o1")
    patch = to_store_patch(order)
    assert patch["status"] == "approved"
    assert patch["neteaseEmail"] == "player@example.com"

    again = normalize_order(patch, record_id="o1")
    assert again.price == order.price
    assert again.cost == order.cost
    assert again.product == order.product
    assert again.status is order.status
    assert again.profit == order.profit
    assert again.customer_identity == order.customer_identity


def test_uid_order_patch_has_no_credentials():
    order = normalize_order(_raw(neteaseEmail=None, neteasePassword=None, uid="999"), record_id="o1")
    patch = to_store_patch(order)
    assert patch["uid"] == "999"
    assert "neteaseEmail" not in patch
    assert "profit" not in patch


def test_statement_record_round_trip():
    order = normalize_order(_raw(), record_id="o1")
    statement = Statement.for_order(order, approved_at=1717200100000)
    record = statement_to_record(statement)
    assert record["orderId"] == "o1"
    assert record["profit"] == 874.4

    back = statement_from_record({**record, "id": "s1"})
    assert back.id == "s1"
    assert back.order_id == "o1"
    assert back.price == statement.price
    assert back.cost == statement.cost
    assert back.profit == Decimal("874.4")
    assert back.approved_at == 1717200100000
    assert back.status is OrderStatus.approved


def test_product_name_kept_verbatim():
    order = normalize_order(_raw(product="  Monthly Card "), record_id="o1")
    assert order.product == "  Monthly Card "
    assert to_store_patch(order)["product"] == "  Monthly Card "
    assert normalize_order(to_store_patch(order), record_id="o1").product == "  Monthly Card "

    assert normalize_order(_raw(product="   "), record_id="o2").product == UNKNOWN_PRODUCT


def test_timestamp_out_of_range_rejects_record():
    result = normalize_snapshot(
        {"ok": _raw(timestamp=1717200000000), "micros": _raw(timestamp=1717200000000000)}
    )
    assert [o.id for o in result.orders] == ["ok"]
    assert result.rejected["micros"].field == "timestamp"


def test_amounts_kept_to_cents():
    order = normalize_order(_raw(price=100.005, cost=0.004, profit="1.234"), record_id="o1")
    assert order.price == Decimal("100.01")
    assert order.cost == Decimal("0.00")
    assert order.profit == Decimal("1.23")
    assert order.derived_profit == Decimal("100.01")

    # float noise disappears
    assert normalize_order(_raw(price=0.1 + 0.2), record_id="o2").price == Decimal("0.30")
