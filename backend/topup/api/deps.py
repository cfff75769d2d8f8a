"""
FastAPI 依赖注入模块

提供可复用的依赖项，用于路由处理函数中。
FastAPI 的依赖注入系统会自动处理这些依赖的创建和注入。

关键概念：
- Depends: FastAPI 的依赖注入装饰器
- Generator: 用于创建需要清理的资源（如数据库会话、快照订阅）
- 订单存储 / 账单存储 / 流转控制器都绑定在当前请求的数据库会话上
"""
from collections.abc import Generator  # 生成器类型，用于资源管理
from typing import Annotated  # 类型注解，用于依赖注入

from fastapi import Depends
from sqlmodel import Session  # 数据库会话

from topup.core.db import engine
from topup.services.lifecycle import OrderLifecycleController
from topup.store.sql import SqlOrderStore, SqlStatementStore


def get_db() -> Generator[Session, None, None]:
    """
    获取数据库会话（依赖注入）

    使用 yield 确保会话在请求结束后自动关闭。

    Yields:
        Session: 数据库会话对象
    """
    with Session(engine) as session:
        yield session  # yield 确保会话在请求结束后自动关闭


# 类型别名，简化依赖注入的写法
SessionDep = Annotated[Session, Depends(get_db)]  # 数据库会话依赖


def get_order_store(session: SessionDep) -> SqlOrderStore:
    return SqlOrderStore(session)


def get_statement_store(session: SessionDep) -> SqlStatementStore:
    return SqlStatementStore(session)


OrderStoreDep = Annotated[SqlOrderStore, Depends(get_order_store)]
StatementStoreDep = Annotated[SqlStatementStore, Depends(get_statement_store)]


def get_lifecycle(
    order_store: OrderStoreDep, statement_store: StatementStoreDep
) -> Generator[OrderLifecycleController, None, None]:
    """
    获取订单流转控制器（依赖注入）

    控制器在创建时订阅订单存储，请求结束后取消订阅。
    """
    controller = OrderLifecycleController(order_store, statement_store)
    try:
        yield controller
    finally:
        controller.close()


LifecycleDep = Annotated[OrderLifecycleController, Depends(get_lifecycle)]
