"""首页统计API"""

from typing import Any
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.deps import get_db
from showroom.models.customer import Customer
from showroom.models.spare_part import SparePart
from showroom.models.transaction import PurchaseTransaction, SalesTransaction
from showroom.models.vehicle import Vehicle, VehicleStatus
from showroom.schemas.dashboard import DashboardStats

router = APIRouter()


async def _scalar(db: AsyncSession, query) -> Any:
    result = await db.execute(query)
    return result.scalar() or 0


async def _count_vehicles(db: AsyncSession, status: str = None) -> int:
    query = select(func.count(Vehicle.id))
    if status:
        query = query.where(Vehicle.status == status)
    return int(await _scalar(db, query))


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    *,
    db: AsyncSession = Depends(get_db)) -> Any:
    """获取首页统计数据"""
    now = datetime.utcnow()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    # 今日收购 / 销售笔数
    today_purchases = await _scalar(db, select(func.count(PurchaseTransaction.id)).where(
        PurchaseTransaction.transaction_date >= today_start
    ))
    today_sales = await _scalar(db, select(func.count(SalesTransaction.id)).where(
        SalesTransaction.transaction_date >= today_start
    ))

    # 销售额（只统计已完成的销售）
    today_revenue = await _scalar(db, select(func.coalesce(func.sum(SalesTransaction.total_amount), 0)).where(
        SalesTransaction.status == "completed",
        SalesTransaction.transaction_date >= today_start
    ))
    monthly_revenue = await _scalar(db, select(func.coalesce(func.sum(SalesTransaction.total_amount), 0)).where(
        SalesTransaction.status == "completed",
        SalesTransaction.transaction_date >= month_start
    ))

    # 累计毛利 = 销售合计 - 收购合计
    total_sales = await _scalar(db, select(func.coalesce(func.sum(SalesTransaction.total_amount), 0)).where(
        SalesTransaction.status == "completed"
    ))
    total_purchases = await _scalar(db, select(func.coalesce(func.sum(PurchaseTransaction.total_amount), 0)).where(
        PurchaseTransaction.status == "completed"
    ))

    total_customers = await _scalar(db, select(func.count(Customer.id)).where(Customer.is_active == True))
    low_stock = await _scalar(db, select(func.count(SparePart.id)).where(
        SparePart.is_active == True,
        SparePart.stock_quantity < SparePart.min_stock_level
    ))

    return DashboardStats(
        total_vehicles=await _count_vehicles(db),
        vehicles_for_sale=await _count_vehicles(db, VehicleStatus.READY_TO_SELL.value),
        vehicles_in_repair=await _count_vehicles(db, VehicleStatus.IN_REPAIR.value),
        vehicles_sold=await _count_vehicles(db, VehicleStatus.SOLD.value),
        total_customers=int(total_customers),
        today_purchases=int(today_purchases),
        today_sales=int(today_sales),
        today_revenue=float(today_revenue),
        monthly_revenue=float(monthly_revenue),
        total_profit=float(total_sales) - float(total_purchases),
        low_stock_parts=int(low_stock))
