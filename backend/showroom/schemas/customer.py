"""客户Schema"""
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime


class CustomerBase(BaseModel):
    """客户基础字段"""
    name: str = Field(..., min_length=1, max_length=100, description="名称")
    phone: Optional[str] = Field(None, max_length=20, description="电话")
    email: Optional[EmailStr] = Field(None, description="邮箱")
    address: Optional[str] = Field(None, description="地址")
    id_card_number: Optional[str] = Field(None, max_length=50, description="证件号")
    type: str = Field(default="individual", pattern="^(individual|corporate)$", description="客户类型：individual/corporate")


class CustomerCreate(CustomerBase):
    """创建客户（编码自动生成）"""
    pass


class CustomerUpdate(BaseModel):
    """更新客户"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    id_card_number: Optional[str] = Field(None, max_length=50)
    type: Optional[str] = Field(None, pattern="^(individual|corporate)$")
    is_active: Optional[bool] = None


class CustomerResponse(CustomerBase):
    """客户响应"""
    id: int
    customer_code: str
    type_display: str = ""
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerListResponse(BaseModel):
    """客户列表响应"""
    data: List[CustomerResponse]
    total: int
    page: int
    limit: int
