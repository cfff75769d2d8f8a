"""
启动前等待数据库就绪

部署时数据库容器可能比应用晚就绪，这里按固定间隔重试连接，
连上之后才继续执行 Alembic 迁移和 initial_data。

    python -m topup.backend_pre_start
"""
import logging

from sqlalchemy import Engine
from sqlmodel import Session, select
from tenacity import after_log, before_log, retry, stop_after_attempt, wait_fixed

from topup.core.db import engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

max_tries = 60 * 5  # 最多等 5 分钟
wait_seconds = 1


@retry(
    stop=stop_after_attempt(max_tries),
    wait=wait_fixed(wait_seconds),
    before=before_log(logger, logging.INFO),
    after=after_log(logger, logging.WARN),
)
def init(db_engine: Engine) -> None:
    """
    执行一次 SELECT 1 检查连接

    Raises:
        Exception: 连接失败，交给 tenacity 重试；重试耗尽后向上抛出
    """
    try:
        with Session(db_engine) as session:
            session.exec(select(1))
    except Exception as e:
        logger.error("Database not ready: %s", e)
        raise e


def main() -> None:
    logger.info("Waiting for the order database")
    init(engine)
    logger.info("Order database is ready")


if __name__ == "__main__":  # pragma: no cover
    main()
