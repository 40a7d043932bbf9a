"""客户管理API"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.config import settings
from showroom.core.deps import get_db
from showroom.models.customer import Customer
from showroom.schemas.customer import (
    CustomerCreate, CustomerUpdate, CustomerResponse, CustomerListResponse
)
from showroom.services import directory

router = APIRouter()


def build_customer_response(customer: Customer) -> CustomerResponse:
    """构建客户响应"""
    return CustomerResponse(
        id=customer.id,
        customer_code=customer.customer_code,
        name=customer.name,
        phone=customer.phone,
        email=customer.email,
        address=customer.address,
        id_card_number=customer.id_card_number,
        type=customer.type,
        type_display=customer.type_display,
        is_active=bool(customer.is_active),
        created_by=customer.created_by,
        created_at=customer.created_at,
        updated_at=customer.updated_at)


@router.get("/", response_model=CustomerListResponse)
async def list_customers(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="搜索编码/名称/电话/邮箱"),
    type: Optional[str] = Query(None, pattern="^(individual|corporate)$", description="客户类型"),
    include_inactive: bool = Query(False, description="是否包含已停用客户")) -> Any:
    """获取客户列表"""
    customers, total = await directory.list_customers(
        db, page=page, limit=limit, search=search,
        customer_type=type, include_inactive=include_inactive)
    return CustomerListResponse(
        data=[build_customer_response(c) for c in customers],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    *,
    db: AsyncSession = Depends(get_db),
    customer_id: int) -> Any:
    """获取客户详情"""
    customer = await directory.get_customer(db, customer_id)
    return build_customer_response(customer)


@router.post("/", response_model=CustomerResponse)
async def create_customer(
    *,
    db: AsyncSession = Depends(get_db),
    customer_in: CustomerCreate) -> Any:
    """新建客户（编码自动生成）"""
    customer = await directory.create_customer(db, customer_in, operator_id=settings.DEFAULT_OPERATOR_ID)
    await db.commit()
    customer_id = customer.id

    db.expire_all()
    customer = await directory.get_customer(db, customer_id)
    return build_customer_response(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    *,
    db: AsyncSession = Depends(get_db),
    customer_id: int,
    customer_in: CustomerUpdate) -> Any:
    """更新客户"""
    await directory.update_customer(db, customer_id, customer_in)
    await db.commit()

    db.expire_all()
    customer = await directory.get_customer(db, customer_id)
    return build_customer_response(customer)


@router.delete("/{customer_id}")
async def delete_customer(
    *,
    db: AsyncSession = Depends(get_db),
    customer_id: int) -> Any:
    """删除客户（软删除，设置为不启用）"""
    await directory.delete_customer(db, customer_id)
    await db.commit()
    return {"message": "客户已停用"}
