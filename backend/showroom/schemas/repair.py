"""维修单Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime

from showroom.models.repair import RepairStatus


class RepairCreate(BaseModel):
    """开维修单"""
    vehicle_id: int = Field(..., description="车辆ID")
    title: str = Field(..., min_length=1, max_length=100, description="标题")
    description: Optional[str] = Field(None, description="描述")
    mechanic_id: Optional[int] = Field(None, description="维修技师ID")


class RepairUpdate(BaseModel):
    """更新维修单（金额合计由系统重算）"""
    title: str = Field(..., min_length=1, max_length=100, description="标题")
    description: Optional[str] = None
    labor_cost: Optional[float] = Field(None, ge=0, description="工时费")
    mechanic_id: Optional[int] = None
    work_notes: Optional[str] = None


class RepairStatusUpdate(BaseModel):
    """修改维修单状态"""
    status: RepairStatus = Field(..., description="目标状态")


class RepairPartCreate(BaseModel):
    """维修领料"""
    spare_part_id: int = Field(..., description="配件ID")
    quantity: int = Field(..., gt=0, description="领用数量")
    notes: Optional[str] = Field(None, description="备注")


class RepairPartResponse(BaseModel):
    """维修用料明细响应"""
    id: int
    repair_id: int
    spare_part_id: int
    part_code: str = ""
    part_name: str = ""
    quantity_used: int
    unit_cost: float
    total_cost: float
    used_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class RepairResponse(BaseModel):
    """维修单响应"""
    id: int
    repair_number: str
    vehicle_id: int
    vehicle_code: str = ""
    vehicle_name: str = ""
    title: str
    description: Optional[str] = None
    labor_cost: float
    total_parts_cost: float
    total_cost: float
    status: str
    status_display: str = ""
    mechanic_id: Optional[int] = None
    mechanic_name: str = ""
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    work_notes: Optional[str] = None
    parts: List[RepairPartResponse] = []

    class Config:
        from_attributes = True


class RepairListResponse(BaseModel):
    """维修单列表响应"""
    data: List[RepairResponse]
    total: int
    page: int
    limit: int
