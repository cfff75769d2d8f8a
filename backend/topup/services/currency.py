"""
金额换算工具

- 固定汇率的 BDT / USD 互换（汇率见 settings.BDT_PER_USD）
- 下单时的税费计算（税率见 settings.TAX_RATE）
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from topup.core.config import settings
from topup.enums import Currency

_CENT = Decimal("0.01")


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def convert(amount: Decimal, from_currency: Currency | str, rate: Decimal | None = None) -> Decimal:
    """
    换算到另一种货币

    Args:
        amount: 金额
        from_currency: 原货币；BDT 换成 USD，USD 换成 BDT
        rate: 每 1 USD 兑换的 BDT，默认取配置

    Returns:
        换算后的金额，保留两位小数
    """
    rate = settings.BDT_PER_USD if rate is None else rate
    if Currency(from_currency) is Currency.USD:
        return quantize(amount * rate)
    return quantize(amount / rate)


def apply_tax(base_price: Decimal, tax_rate: Decimal | None = None) -> tuple[Decimal, Decimal]:
    """
    计算税费

    Returns:
        (税费, 含税总价)
    """
    tax_rate = settings.TAX_RATE if tax_rate is None else tax_rate
    tax = quantize(base_price * tax_rate)
    return tax, base_price + tax
