"""员工目录API（只读）"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.deps import get_db
from showroom.models.user import User
from showroom.schemas.user import UserResponse, UserListResponse
from showroom.services import directory

router = APIRouter()


def build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        role=user.role,
        role_display=user.role_display,
        is_active=user.is_active,
        created_at=user.created_at)


@router.get("/", response_model=UserListResponse)
async def list_users(
    *,
    db: AsyncSession = Depends(get_db),
    role: Optional[str] = Query(None, pattern="^(admin|mechanic|cashier)$", description="按角色筛选")) -> Any:
    """获取员工列表（用于选择收银员、维修技师）"""
    users = await directory.list_users(db, role=role)
    return UserListResponse(data=[build_user_response(u) for u in users], total=len(users))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    *,
    db: AsyncSession = Depends(get_db),
    user_id: int) -> Any:
    """获取员工详情"""
    user = await directory.get_user(db, user_id)
    return build_user_response(user)
