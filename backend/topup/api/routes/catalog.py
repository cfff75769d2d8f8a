"""
价目表路由模块

返回直充 / 代充商品的售价和成本。
"""
from __future__ import annotations

from fastapi import APIRouter

from topup.api.schemas import ApiEnvelope, CatalogData
from topup.core.config import settings
from topup.services.config_service import get_config

router = APIRouter(tags=["catalog"])


@router.get("/catalog", response_model=ApiEnvelope)
def catalog() -> ApiEnvelope:
    """
    获取价目表

    请求路径: GET /api/v1/catalog
    """
    cfg = get_config()
    data = CatalogData(
        currency=cfg.get("currency", settings.CURRENCY),
        tax_rate=settings.TAX_RATE,
        uid_packages=cfg.get("uid_packages", {}),
        in_game_packages=cfg.get("in_game_packages", {}),
    )
    return ApiEnvelope(data=data)
