"""
车辆登记服务

车辆状态有两种写法：
- set_status         无条件写入，维修单/交易流程内部使用
- transition_status  按状态图校验后写入，对外的严格模式使用

累计维修成本用 UPDATE total_repair_cost = total_repair_cost + :delta 累加，
不会丢失并发写入。
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.exceptions import (
    InvalidStatusTransition, ValidationFailed, VehicleInUse, VehicleNotFound
)
from showroom.models.vehicle import Vehicle, VehicleStatus
from showroom.models.repair import Repair
from showroom.models.transaction import PurchaseTransaction, SalesTransaction
from showroom.schemas.vehicle import VehicleCreate, VehicleUpdate
from showroom.services.directory import get_customer, get_user
from showroom.services.numbering import generate_vehicle_code

logger = logging.getLogger(__name__)

# 状态图：当前状态 → 允许的下一个状态
ALLOWED_TRANSITIONS = {
    VehicleStatus.PURCHASED.value: {VehicleStatus.IN_REPAIR.value},
    VehicleStatus.IN_REPAIR.value: {VehicleStatus.READY_TO_SELL.value},
    VehicleStatus.READY_TO_SELL.value: {VehicleStatus.RESERVED.value, VehicleStatus.IN_REPAIR.value},
    VehicleStatus.RESERVED.value: {VehicleStatus.SOLD.value},
    VehicleStatus.SOLD.value: set(),
}

MONEY_FIELDS = ("purchase_price", "suggested_selling_price")


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


async def get_vehicle(db: AsyncSession, vehicle_id: int) -> Vehicle:
    vehicle = await db.get(Vehicle, vehicle_id)
    if not vehicle:
        raise VehicleNotFound()
    return vehicle


async def set_status(
    db: AsyncSession,
    vehicle: Vehicle,
    new_status: Union[VehicleStatus, str]) -> Vehicle:
    """无条件写入车辆状态"""
    new_status = VehicleStatus(new_status).value
    old_status = vehicle.status
    vehicle.status = new_status
    await db.flush()
    if old_status != new_status:
        logger.info(f"🚗 车辆 {vehicle.vehicle_code} 状态: {old_status} → {new_status}")
    return vehicle


async def transition_status(
    db: AsyncSession,
    vehicle: Vehicle,
    new_status: Union[VehicleStatus, str]) -> Vehicle:
    """按状态图校验后写入车辆状态，状态不变时什么也不做"""
    new_status = VehicleStatus(new_status).value
    if new_status == vehicle.status:
        return vehicle
    if new_status not in ALLOWED_TRANSITIONS.get(vehicle.status, set()):
        logger.warning(f"⚠️ 车辆 {vehicle.vehicle_code} 状态变更被拒: {vehicle.status} → {new_status}")
        raise InvalidStatusTransition(vehicle.status, new_status)
    return await set_status(db, vehicle, new_status)


async def accumulate_repair_cost(db: AsyncSession, vehicle: Vehicle, delta: Decimal) -> Vehicle:
    """累加维修成本（delta 可以为负）"""
    # 先把未提交的改动写下去，refresh 才不会把它们冲掉
    await db.flush()
    await db.execute(
        update(Vehicle)
        .where(Vehicle.id == vehicle.id)
        .values(total_repair_cost=Vehicle.total_repair_cost + Decimal(str(delta)))
        .execution_options(synchronize_session=False)
    )
    await db.refresh(vehicle)
    logger.info(f"💰 车辆 {vehicle.vehicle_code} 累计维修成本 +{delta} = {vehicle.total_repair_cost}")
    return vehicle


async def create_vehicle(
    db: AsyncSession,
    vehicle_in: VehicleCreate,
    operator_id: Optional[int] = None) -> Vehicle:
    """车辆入库：生成编码，状态为已收购"""
    if vehicle_in.purchased_from_customer_id:
        await get_customer(db, vehicle_in.purchased_from_customer_id)

    existing = await db.execute(
        select(Vehicle.id).where(Vehicle.chassis_number == vehicle_in.chassis_number)
    )
    if existing.first():
        raise ValidationFailed(f"车架号 {vehicle_in.chassis_number} 已存在")

    data = vehicle_in.model_dump()
    for field in MONEY_FIELDS:
        data[field] = _to_decimal(data[field])

    vehicle = Vehicle(
        **data,
        vehicle_code=await generate_vehicle_code(db),
        status=VehicleStatus.PURCHASED.value,
        total_repair_cost=Decimal("0.00"),
        purchased_by_cashier=operator_id,
        purchased_at=datetime.utcnow())
    db.add(vehicle)
    await db.flush()

    logger.info(f"🚗 车辆入库 {vehicle.vehicle_code} {vehicle.display_name}")
    return vehicle


async def update_vehicle(db: AsyncSession, vehicle_id: int, vehicle_in: VehicleUpdate) -> Vehicle:
    """更新车辆信息（车架号、编码、状态不在此修改）"""
    vehicle = await get_vehicle(db, vehicle_id)
    for field, value in vehicle_in.model_dump(exclude_unset=True).items():
        if field in MONEY_FIELDS:
            value = _to_decimal(value)
        setattr(vehicle, field, value)
    await db.flush()
    return vehicle


async def approve_selling_price(
    db: AsyncSession,
    vehicle_id: int,
    price: float,
    approver_id: int) -> Vehicle:
    """核准售价"""
    if price is None or price <= 0:
        raise ValidationFailed("核准售价必须大于0")
    vehicle = await get_vehicle(db, vehicle_id)
    await get_user(db, approver_id)

    vehicle.approved_selling_price = _to_decimal(price)
    vehicle.price_approved_by_admin = approver_id
    await db.flush()
    logger.info(f"✅ 车辆 {vehicle.vehicle_code} 核准售价 {vehicle.approved_selling_price}")
    return vehicle


async def delete_vehicle(db: AsyncSession, vehicle_id: int) -> None:
    """删除车辆（物理删除），已有维修单或交易记录的车辆不能删"""
    vehicle = await get_vehicle(db, vehicle_id)

    for model in (Repair, PurchaseTransaction, SalesTransaction):
        result = await db.execute(
            select(func.count(model.id)).where(model.vehicle_id == vehicle_id)
        )
        if result.scalar():
            logger.warning(f"⚠️ 车辆 {vehicle.vehicle_code} 已被 {model.__tablename__} 引用，拒绝删除")
            raise VehicleInUse()

    await db.delete(vehicle)
    await db.flush()
    logger.info(f"🗑️ 删除车辆 {vehicle.vehicle_code}")


async def list_vehicles(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[str] = None) -> Tuple[List[Vehicle], int]:
    """车辆列表，搜索编码/车架号/车牌/品牌/车型"""
    conditions = []
    if status:
        conditions.append(Vehicle.status == status)
    if search:
        conditions.append(or_(
            Vehicle.vehicle_code.ilike(f"%{search}%"),
            Vehicle.chassis_number.ilike(f"%{search}%"),
            Vehicle.license_plate.ilike(f"%{search}%"),
            Vehicle.brand.ilike(f"%{search}%"),
            Vehicle.model.ilike(f"%{search}%"),
        ))

    count_result = await db.execute(select(func.count(Vehicle.id)).where(*conditions))
    total = count_result.scalar() or 0

    result = await db.execute(
        select(Vehicle)
        .where(*conditions)
        .order_by(Vehicle.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().unique().all()), total
