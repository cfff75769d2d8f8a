"""
工具路由模块

提供系统工具类的 API 端点：健康检查、货币换算。
"""
from decimal import Decimal

from fastapi import APIRouter, Query

from topup.api.schemas import ApiEnvelope, ConvertData
from topup.core.config import settings
from topup.enums import Currency
from topup.services.currency import convert

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/health-check/")
async def health_check() -> bool:
    """
    健康检查端点

    请求路径: GET /api/v1/utils/health-check/

    Returns:
        bool: 总是返回 True，表示服务正常
    """
    return True


@router.get("/convert", response_model=ApiEnvelope)
def convert_currency(
    amount: Decimal = Query(ge=0, allow_inf_nan=False),
    from_currency: Currency = Currency.USD,
) -> ApiEnvelope:
    """
    BDT / USD 固定汇率换算

    请求路径: GET /api/v1/utils/convert?amount=10&from_currency=USD
    """
    to_currency = Currency.BDT if from_currency is Currency.USD else Currency.USD
    return ApiEnvelope(
        data=ConvertData(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            result=convert(amount, from_currency),
            rate=settings.BDT_PER_USD,
        )
    )
