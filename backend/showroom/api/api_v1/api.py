"""V1 API 路由聚合 - 单机版（无认证）"""
from fastapi import APIRouter

from showroom.api.api_v1.endpoints import (
    customers, users, vehicles, spare_parts, repairs, transactions, dashboard
)

api_router = APIRouter()

# 基础资料
api_router.include_router(customers.router, prefix="/customers", tags=["客户管理"])
api_router.include_router(users.router, prefix="/users", tags=["员工目录"])

# 车辆生命周期
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["车辆管理"])
api_router.include_router(spare_parts.router, prefix="/spare-parts", tags=["配件库存"])
api_router.include_router(repairs.router, prefix="/repairs", tags=["维修管理"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["收购与销售"])

# 统计
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["首页统计"])
