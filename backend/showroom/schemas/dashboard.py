"""首页统计Schema"""
from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    """首页统计数据"""
    total_vehicles: int = Field(0, description="车辆总数")
    vehicles_for_sale: int = Field(0, description="待售车辆")
    vehicles_in_repair: int = Field(0, description="维修中车辆")
    vehicles_sold: int = Field(0, description="已售车辆")
    total_customers: int = Field(0, description="有效客户数")
    today_purchases: int = Field(0, description="今日收购笔数")
    today_sales: int = Field(0, description="今日销售笔数")
    today_revenue: float = Field(0, description="今日销售额")
    monthly_revenue: float = Field(0, description="本月销售额")
    total_profit: float = Field(0, description="累计毛利 = 销售合计 - 收购合计")
    low_stock_parts: int = Field(0, description="低库存配件数")
