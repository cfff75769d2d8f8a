"""
API 路由聚合模块

将所有业务路由模块聚合到一个统一的 router 中。
这个 router 会被注册到主应用（topup/main.py）上。

路由模块说明：
- catalog: 价目表
- orders: 客户下单
- admin: 订单审核与经营统计
- utils: 工具相关（健康检查、货币换算）
"""
from fastapi import APIRouter

from topup.api.routes import (
    admin,  # 订单管理路由
    catalog,  # 价目表路由
    orders,  # 下单路由
    utils,  # 工具路由
)

# 创建主 API 路由器
api_router = APIRouter()

# 每个模块的路径前缀在各自的 router 中定义
api_router.include_router(catalog.router)  # /catalog
api_router.include_router(orders.router)  # /orders
api_router.include_router(admin.router)  # /admin/*
api_router.include_router(utils.router)  # /utils/*
