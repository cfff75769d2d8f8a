"""
价目表配置服务

价目表存放在 topup/config/default_config.json：
- uid_packages: 直充商品（客户提供 UID）
- in_game_packages: 代充商品（客户提供游戏账号）

每个商品为 name -> {price, cost}，price 是不含税售价，cost 是进货成本。
"""
from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from threading import Lock
from typing import Any

from topup.enums import OrderType

logger = logging.getLogger(__name__)

_lock = Lock()
_config: dict[str, Any] | None = None

_SECTIONS = {
    OrderType.uid: "uid_packages",
    OrderType.in_game: "in_game_packages",
}


def get_config() -> dict[str, Any]:
    global _config
    with _lock:
        if _config is not None:
            return _config
        _config = _load_from_file()
        return _config


def refresh_config() -> dict[str, Any]:
    global _config
    with _lock:
        _config = _load_from_file()
        return _config


def _load_from_file() -> dict[str, Any]:
    path = Path(__file__).resolve().parents[1] / "config" / "default_config.json"
    if not path.exists():
        logger.warning("Catalog file %s not found, using an empty catalog", path)
        return {"uid_packages": {}, "in_game_packages": {}}
    return json.loads(path.read_text(encoding="utf-8"))


def find_product(name: str, order_type: OrderType | str) -> tuple[Decimal, Decimal] | None:
    """
    按商品名查价目表

    Returns:
        (不含税售价, 成本)；商品不存在时返回 None
    """
    section = get_config().get(_SECTIONS[OrderType(order_type)], {})
    item = section.get(name)
    if not isinstance(item, dict):
        return None
    return Decimal(str(item.get("price", 0))), Decimal(str(item.get("cost", 0)))
