"""
维修单流程

- 开单：车辆进入维修中
- 领料 / 退料：联动配件库存，单位成本取领用时的成本价快照
- 完工：维修总成本累加到车辆，车辆回到待售
- 金额合计每次都按明细全量重算

所有函数只 flush，由调用方统一提交。
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from showroom.core.exceptions import InvalidStatusTransition, RepairNotFound, RepairPartNotFound
from showroom.models.repair import Repair, RepairPart, RepairStatus
from showroom.models.vehicle import Vehicle, VehicleStatus
from showroom.schemas.repair import RepairCreate, RepairPartCreate, RepairUpdate
from showroom.services import inventory
from showroom.services.directory import get_user
from showroom.services.numbering import generate_repair_number
from showroom.services.vehicle_registry import accumulate_repair_cost, get_vehicle, set_status

logger = logging.getLogger(__name__)

REPAIR_TRANSITIONS = {
    RepairStatus.PENDING.value: {RepairStatus.IN_PROGRESS.value, RepairStatus.CANCELLED.value},
    RepairStatus.IN_PROGRESS.value: {RepairStatus.COMPLETED.value, RepairStatus.CANCELLED.value},
    RepairStatus.COMPLETED.value: set(),
    RepairStatus.CANCELLED.value: set(),
}

CENT = Decimal("0.01")


async def load_repair(db: AsyncSession, repair_id: int) -> Repair:
    """加载维修单（含用料明细）"""
    result = await db.execute(
        select(Repair)
        .options(selectinload(Repair.parts))
        .where(Repair.id == repair_id)
    )
    repair = result.scalars().unique().one_or_none()
    if not repair:
        raise RepairNotFound()
    return repair


async def recalculate_costs(db: AsyncSession, repair: Repair) -> Repair:
    """
    全量重算维修单金额

    total_parts_cost = Σ 明细.total_cost
    total_cost = labor_cost + total_parts_cost
    """
    await db.flush()
    result = await db.execute(
        select(func.coalesce(func.sum(RepairPart.total_cost), 0))
        .where(RepairPart.repair_id == repair.id)
    )
    parts_total = Decimal(str(result.scalar() or 0)).quantize(CENT)
    labor = Decimal(str(repair.labor_cost or 0)).quantize(CENT)

    repair.total_parts_cost = parts_total
    repair.total_cost = labor + parts_total
    await db.flush()
    return repair


async def create_repair(db: AsyncSession, repair_in: RepairCreate) -> Repair:
    """开维修单，车辆状态强制为维修中"""
    vehicle = await get_vehicle(db, repair_in.vehicle_id)
    if repair_in.mechanic_id:
        await get_user(db, repair_in.mechanic_id)

    repair = Repair(
        repair_number=await generate_repair_number(db),
        vehicle_id=vehicle.id,
        title=repair_in.title,
        description=repair_in.description,
        mechanic_id=repair_in.mechanic_id,
        labor_cost=Decimal("0.00"),
        total_parts_cost=Decimal("0.00"),
        total_cost=Decimal("0.00"),
        status=RepairStatus.PENDING.value,
        created_at=datetime.utcnow())
    db.add(repair)
    await db.flush()

    await set_status(db, vehicle, VehicleStatus.IN_REPAIR)
    logger.info(f"🔧 开维修单 {repair.repair_number}（车辆 {vehicle.vehicle_code}）")
    return repair


async def add_part(
    db: AsyncSession,
    repair_id: int,
    part_in: RepairPartCreate,
    operator_id: Optional[int] = None) -> RepairPart:
    """领料：扣库存、记明细、重算金额"""
    repair = await load_repair(db, repair_id)

    unit_cost = await inventory.reserve(
        db,
        part_in.spare_part_id,
        part_in.quantity,
        operator_id=operator_id,
        reference_type="repair",
        reference_id=repair.id,
        notes=f"维修单 {repair.repair_number} 领料")
    unit_cost = Decimal(str(unit_cost or 0)).quantize(CENT)

    line = RepairPart(
        spare_part_id=part_in.spare_part_id,
        quantity_used=part_in.quantity,
        unit_cost=unit_cost,
        total_cost=(unit_cost * part_in.quantity).quantize(CENT),
        used_at=datetime.utcnow(),
        notes=part_in.notes)
    repair.parts.append(line)
    await recalculate_costs(db, repair)

    logger.info(
        f"🔩 {repair.repair_number} 领料 配件#{part_in.spare_part_id} x{part_in.quantity}，"
        f"维修总成本 {repair.total_cost}"
    )
    return line


async def remove_part(
    db: AsyncSession,
    repair_id: int,
    line_id: int,
    operator_id: Optional[int] = None) -> Repair:
    """退料：删明细、退库存、重算金额"""
    repair = await load_repair(db, repair_id)
    line = next((p for p in repair.parts if p.id == line_id), None)
    if line is None:
        raise RepairPartNotFound()

    spare_part_id = line.spare_part_id
    quantity = line.quantity_used
    repair.parts.remove(line)
    await db.flush()

    await inventory.release(
        db,
        spare_part_id,
        quantity,
        operator_id=operator_id,
        reference_type="repair",
        reference_id=repair.id,
        notes=f"维修单 {repair.repair_number} 退料")
    await recalculate_costs(db, repair)

    logger.info(f"↩️ {repair.repair_number} 退料 明细#{line_id}，维修总成本 {repair.total_cost}")
    return repair


async def update_repair(db: AsyncSession, repair_id: int, repair_in: RepairUpdate) -> Repair:
    """更新维修单；改了工时费就重算合计"""
    repair = await load_repair(db, repair_id)
    update_data = repair_in.model_dump(exclude_unset=True)

    if update_data.get("mechanic_id"):
        await get_user(db, update_data["mechanic_id"])

    for field in ("title", "description", "mechanic_id", "work_notes"):
        if field in update_data:
            setattr(repair, field, update_data[field])

    if update_data.get("labor_cost") is not None:
        repair.labor_cost = Decimal(str(update_data["labor_cost"])).quantize(CENT)
        await recalculate_costs(db, repair)
    else:
        await db.flush()
    return repair


async def update_status(
    db: AsyncSession,
    repair_id: int,
    new_status: Union[RepairStatus, str]) -> Repair:
    """
    变更维修单状态

    - in_progress: 记录开工时间
    - completed:   记录完工时间，总成本累加到车辆，车辆强制回到待售
    - cancelled:   只改状态
    重复提交当前状态不做任何处理，完工成本不会被重复累加。
    """
    new_status = RepairStatus(new_status).value
    repair = await load_repair(db, repair_id)
    current = repair.status

    if new_status == current:
        return repair
    if new_status not in REPAIR_TRANSITIONS.get(current, set()):
        logger.warning(f"⚠️ 维修单 {repair.repair_number} 状态变更被拒: {current} → {new_status}")
        raise InvalidStatusTransition(current, new_status)

    now = datetime.utcnow()
    repair.status = new_status
    if new_status == RepairStatus.IN_PROGRESS.value:
        repair.started_at = now
    elif new_status == RepairStatus.COMPLETED.value:
        repair.completed_at = now
    await db.flush()

    if new_status == RepairStatus.COMPLETED.value:
        vehicle = await get_vehicle(db, repair.vehicle_id)
        await accumulate_repair_cost(db, vehicle, repair.total_cost)
        # 不看车辆当前状态，哪怕已售也改回待售
        await set_status(db, vehicle, VehicleStatus.READY_TO_SELL)
    elif new_status == RepairStatus.CANCELLED.value:
        # TODO: 取消时不退回已领用的配件库存，也不冲减车辆维修成本，需要补偿逻辑
        logger.info(f"🚫 维修单 {repair.repair_number} 已取消（已领用配件未退库）")

    logger.info(f"🔧 维修单 {repair.repair_number} 状态: {current} → {new_status}")
    return repair


async def list_repairs(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[str] = None,
    vehicle_id: Optional[int] = None) -> Tuple[List[Repair], int]:
    """维修单列表，搜索单号/标题/车辆编码"""
    conditions = []
    if status:
        conditions.append(Repair.status == status)
    if vehicle_id:
        conditions.append(Repair.vehicle_id == vehicle_id)
    if search:
        conditions.append(or_(
            Repair.repair_number.ilike(f"%{search}%"),
            Repair.title.ilike(f"%{search}%"),
            Repair.vehicle.has(Vehicle.vehicle_code.ilike(f"%{search}%")),
        ))

    count_result = await db.execute(select(func.count(Repair.id)).where(*conditions))
    total = count_result.scalar() or 0

    result = await db.execute(
        select(Repair)
        .options(selectinload(Repair.parts))
        .where(*conditions)
        .order_by(Repair.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().unique().all()), total
