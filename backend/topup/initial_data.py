"""
初始数据脚本

迁移完成后执行。订单和账单都不需要种子数据，
这里只预加载价目表并核对数据库状态。

    python -m topup.initial_data
"""
import logging

from sqlmodel import Session

from topup.core.db import engine, init_db
from topup.services.config_service import get_config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init() -> None:
    with Session(engine) as session:
        init_db(session)
    catalog = get_config()
    logger.info(
        "Catalog loaded: %d UID packages, %d in-game packages",
        len(catalog.get("uid_packages", {})),
        len(catalog.get("in_game_packages", {})),
    )


def main() -> None:
    logger.info("Creating initial data")
    init()
    logger.info("Initial data created")


if __name__ == "__main__":  # pragma: no cover
    main()
