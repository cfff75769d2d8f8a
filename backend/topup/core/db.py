"""
数据库连接模块

管理数据库引擎的创建。订单文档表和账单表都通过这个引擎访问。

重要提示：
- 表结构通过 Alembic 迁移管理（topup/alembic/versions），不要在这里建表
- 使用前先导入 topup.models，确保 SQLModel 元数据里注册了所有表
"""
import logging

from sqlmodel import Session, create_engine, select

from topup.core.config import settings
from topup.models import StatementRecord

logger = logging.getLogger(__name__)

# 创建数据库引擎（连接池）
engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI), pool_pre_ping=True)


def init_db(session: Session) -> None:
    """
    初始化数据库

    账单表只能由审批流程写入，这里不做任何种子数据；
    只记录当前账单数量，便于部署后核对迁移是否生效。

    Args:
        session: 数据库会话
    """
    # Tables should be created with Alembic migrations.
    count = len(session.exec(select(StatementRecord.id)).all())
    logger.info("Database ready, %d statements on record", count)
