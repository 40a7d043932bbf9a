"""配件与库存流水Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime


# ===== 配件 =====
class SparePartBase(BaseModel):
    """配件基础字段"""
    name: str = Field(..., min_length=1, max_length=100, description="名称")
    description: Optional[str] = Field(None, description="描述")
    brand: Optional[str] = Field(None, max_length=50, description="品牌")
    cost_price: float = Field(default=0, ge=0, description="成本价")
    selling_price: float = Field(default=0, ge=0, description="售价")
    min_stock_level: int = Field(default=0, ge=0, description="最低库存预警线")
    unit_measure: Optional[str] = Field(None, max_length=20, description="计量单位")


class SparePartCreate(SparePartBase):
    """创建配件（编码自动生成）"""
    stock_quantity: int = Field(default=0, ge=0, description="初始库存")


class SparePartUpdate(BaseModel):
    """更新配件（库存数量只能通过盘点调整或维修领用变动）"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    brand: Optional[str] = Field(None, max_length=50)
    cost_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    min_stock_level: Optional[int] = Field(None, ge=0)
    unit_measure: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None


class SparePartAdjust(BaseModel):
    """库存调整（盘点）"""
    new_quantity: int = Field(..., ge=0, description="调整后数量")
    reason: str = Field(..., max_length=200, description="调整原因")


class SparePartResponse(SparePartBase):
    """配件响应"""
    id: int
    part_code: str
    stock_quantity: int
    is_low_stock: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SparePartListResponse(BaseModel):
    """配件列表响应"""
    data: List[SparePartResponse]
    total: int
    page: int
    limit: int


# ===== 库存流水 =====
class StockMovementResponse(BaseModel):
    """库存流水响应"""
    id: int
    spare_part_id: int
    part_code: str = ""
    part_name: str = ""
    movement_type: str
    type_display: str = ""
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    quantity_before: int
    quantity_moved: int
    quantity_after: int
    movement_date: datetime
    processed_by: Optional[int] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class StockMovementListResponse(BaseModel):
    """库存流水列表响应"""
    data: List[StockMovementResponse]
    total: int
    page: int
    limit: int
