"""
客户 / 员工目录

客户删除为软删除；已停用的客户不能再作为交易对象。
员工只做查询，用于校验经办收银员、维修技师、售价核准人。
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.exceptions import CustomerNotFound, UserNotFound
from showroom.models.customer import Customer
from showroom.models.user import User
from showroom.schemas.customer import CustomerCreate, CustomerUpdate
from showroom.services.numbering import generate_customer_code

logger = logging.getLogger(__name__)


# ===== 员工 =====

async def get_user(db: AsyncSession, user_id: int) -> User:
    """获取在职员工，不存在或已停用时抛 UserNotFound"""
    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise UserNotFound()
    return user


async def list_users(db: AsyncSession, role: Optional[str] = None) -> List[User]:
    query = select(User).where(User.is_active == True)
    if role:
        query = query.where(User.role == role)
    result = await db.execute(query.order_by(User.id))
    return list(result.scalars().all())


# ===== 客户 =====

async def get_customer(db: AsyncSession, customer_id: int, active_only: bool = False) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer or (active_only and not customer.is_active):
        raise CustomerNotFound()
    return customer


async def get_active_customer(db: AsyncSession, customer_id: int) -> Customer:
    """交易对象必须是启用中的客户"""
    return await get_customer(db, customer_id, active_only=True)


async def create_customer(
    db: AsyncSession,
    customer_in: CustomerCreate,
    operator_id: Optional[int] = None) -> Customer:
    customer = Customer(
        **customer_in.model_dump(),
        customer_code=await generate_customer_code(db),
        is_active=True,
        created_by=operator_id)
    db.add(customer)
    await db.flush()
    logger.info(f"👤 新建客户 {customer.customer_code} {customer.name}")
    return customer


async def update_customer(db: AsyncSession, customer_id: int, customer_in: CustomerUpdate) -> Customer:
    customer = await get_customer(db, customer_id)
    for field, value in customer_in.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    await db.flush()
    return customer


async def delete_customer(db: AsyncSession, customer_id: int) -> Customer:
    """停用客户（软删除），历史交易仍保留关联"""
    customer = await get_customer(db, customer_id)
    customer.is_active = False
    await db.flush()
    logger.info(f"🗑️ 停用客户 {customer.customer_code}")
    return customer


async def list_customers(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    customer_type: Optional[str] = None,
    include_inactive: bool = False) -> Tuple[List[Customer], int]:
    """客户列表，搜索编码/名称/电话/邮箱"""
    conditions = []
    if not include_inactive:
        conditions.append(Customer.is_active == True)
    if customer_type:
        conditions.append(Customer.type == customer_type)
    if search:
        conditions.append(or_(
            Customer.customer_code.ilike(f"%{search}%"),
            Customer.name.ilike(f"%{search}%"),
            Customer.phone.ilike(f"%{search}%"),
            Customer.email.ilike(f"%{search}%"),
        ))

    count_result = await db.execute(select(func.count(Customer.id)).where(*conditions))
    total = count_result.scalar() or 0

    result = await db.execute(
        select(Customer)
        .where(*conditions)
        .order_by(Customer.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
