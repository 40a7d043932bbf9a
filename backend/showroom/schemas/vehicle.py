"""
车辆相关的Pydantic模式
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from showroom.models.vehicle import VehicleStatus


FUEL_TYPE_PATTERN = "^(gasoline|diesel|electric|hybrid)$"
TRANSMISSION_PATTERN = "^(manual|automatic|cvt)$"


class VehicleBase(BaseModel):
    """车辆基础字段"""
    license_plate: Optional[str] = Field(None, max_length=20, description="车牌号")
    brand: str = Field(..., min_length=1, max_length=50, description="品牌")
    model: str = Field(..., min_length=1, max_length=50, description="车型")
    variant: Optional[str] = Field(None, max_length=50, description="款型")
    year: int = Field(..., ge=1900, le=2030, description="年份")
    color: Optional[str] = Field(None, max_length=30, description="颜色")
    mileage: Optional[int] = Field(None, ge=0, description="里程")
    fuel_type: Optional[str] = Field(None, pattern=FUEL_TYPE_PATTERN, description="燃料类型")
    transmission: Optional[str] = Field(None, pattern=TRANSMISSION_PATTERN, description="变速箱")
    purchase_price: Optional[float] = Field(None, ge=0, description="收购价")
    suggested_selling_price: Optional[float] = Field(None, ge=0, description="建议售价")
    purchased_from_customer_id: Optional[int] = Field(None, description="收购来源客户ID")
    purchase_notes: Optional[str] = Field(None, description="收购备注")
    condition_notes: Optional[str] = Field(None, description="车况备注")


class VehicleCreate(VehicleBase):
    """车辆入库（编码自动生成，状态为已收购）"""
    chassis_number: str = Field(..., min_length=1, max_length=50, description="车架号")


class VehicleUpdate(BaseModel):
    """更新车辆（车架号、编码不可修改）"""
    license_plate: Optional[str] = Field(None, max_length=20)
    brand: Optional[str] = Field(None, min_length=1, max_length=50)
    model: Optional[str] = Field(None, min_length=1, max_length=50)
    variant: Optional[str] = Field(None, max_length=50)
    year: Optional[int] = Field(None, ge=1900, le=2030)
    color: Optional[str] = Field(None, max_length=30)
    mileage: Optional[int] = Field(None, ge=0)
    fuel_type: Optional[str] = Field(None, pattern=FUEL_TYPE_PATTERN)
    transmission: Optional[str] = Field(None, pattern=TRANSMISSION_PATTERN)
    suggested_selling_price: Optional[float] = Field(None, ge=0)
    condition_notes: Optional[str] = None


class VehicleStatusUpdate(BaseModel):
    """修改车辆状态"""
    status: VehicleStatus = Field(..., description="目标状态")


class VehiclePriceApprove(BaseModel):
    """核准售价"""
    approved_selling_price: float = Field(..., gt=0, description="核准售价")
    approved_by: Optional[int] = Field(None, description="核准人（员工ID，缺省为默认经办人）")


class VehicleResponse(BaseModel):
    """车辆响应"""
    id: int
    vehicle_code: str
    chassis_number: str
    license_plate: Optional[str] = None
    brand: str
    model: str
    variant: Optional[str] = None
    year: int
    color: Optional[str] = None
    mileage: Optional[int] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    display_name: str = ""

    # 金额
    purchase_price: Optional[float] = None
    total_repair_cost: float = 0
    cost_basis: float = 0
    suggested_selling_price: Optional[float] = None
    approved_selling_price: Optional[float] = None
    final_selling_price: Optional[float] = None

    status: str
    status_display: str = ""

    # 收购/销售
    purchased_from_customer_id: Optional[int] = None
    purchased_from_customer_name: str = ""
    sold_to_customer_id: Optional[int] = None
    sold_to_customer_name: str = ""
    purchased_by_cashier: Optional[int] = None
    sold_by_cashier: Optional[int] = None
    price_approved_by_admin: Optional[int] = None
    purchased_at: Optional[datetime] = None
    sold_at: Optional[datetime] = None

    purchase_notes: Optional[str] = None
    condition_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    """车辆列表响应"""
    data: List[VehicleResponse]
    total: int
    page: int
    limit: int
