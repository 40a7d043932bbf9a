"""员工Schema（只读目录）"""
from typing import Optional, List
from pydantic import BaseModel
from datetime import datetime


class UserResponse(BaseModel):
    """员工响应"""
    id: int
    username: str
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str
    role_display: str = ""
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """员工列表响应"""
    data: List[UserResponse]
    total: int
