"""
配件库存服务

库存数量只通过这里的函数变动，每次变动记一条流水：
- reserve      维修领料（出库），库存不足直接拒绝
- release      维修退料（入库）
- adjust_stock 盘点调整

扣减用一条带条件的 UPDATE 完成（WHERE stock_quantity >= :q），
并发领料时库存也不会被扣成负数。
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.exceptions import InsufficientStock, SparePartNotFound, ValidationFailed
from showroom.models.spare_part import SparePart, StockMovement
from showroom.schemas.spare_part import SparePartCreate, SparePartUpdate
from showroom.services.numbering import generate_part_code

logger = logging.getLogger(__name__)

MONEY_FIELDS = ("cost_price", "selling_price")


async def get_spare_part(db: AsyncSession, part_id: int, active_only: bool = True) -> SparePart:
    """获取配件（读取最新库存），不存在或已停用时抛 SparePartNotFound"""
    part = await db.get(SparePart, part_id, populate_existing=True)
    if not part or (active_only and not part.is_active):
        raise SparePartNotFound()
    return part


def _record_movement(
    db: AsyncSession,
    part: SparePart,
    movement_type: str,
    quantity_before: int,
    quantity_after: int,
    operator_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    notes: Optional[str] = None) -> StockMovement:
    """记一条库存流水"""
    movement = StockMovement(
        spare_part_id=part.id,
        movement_type=movement_type,
        reference_type=reference_type,
        reference_id=reference_id,
        quantity_before=quantity_before,
        quantity_moved=quantity_after - quantity_before,
        quantity_after=quantity_after,
        movement_date=datetime.utcnow(),
        processed_by=operator_id,
        notes=notes)
    db.add(movement)
    return movement


async def reserve(
    db: AsyncSession,
    part_id: int,
    quantity: int,
    operator_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    notes: Optional[str] = None) -> Decimal:
    """
    领用配件：扣减库存

    Returns:
        配件当前成本价，调用方用作单位成本快照
    """
    if quantity <= 0:
        raise ValidationFailed("领用数量必须大于0")

    part = await get_spare_part(db, part_id)
    if quantity > part.stock_quantity:
        logger.warning(f"⚠️ 领料被拒：{part.part_code} 可用 {part.stock_quantity}，需要 {quantity}")
        raise InsufficientStock(part.part_code, part.stock_quantity, quantity)

    result = await db.execute(
        update(SparePart)
        .where(SparePart.id == part_id, SparePart.stock_quantity >= quantity)
        .values(stock_quantity=SparePart.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(part)
    if result.rowcount == 0:
        # 检查之后库存被其他请求领走了
        logger.warning(f"⚠️ 领料被拒：{part.part_code} 可用 {part.stock_quantity}，需要 {quantity}")
        raise InsufficientStock(part.part_code, part.stock_quantity, quantity)

    _record_movement(
        db, part, "out",
        quantity_before=part.stock_quantity + quantity,
        quantity_after=part.stock_quantity,
        operator_id=operator_id,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes or f"领用 {quantity}")
    await db.flush()

    logger.info(f"📤 配件出库 {part.part_code} -{quantity}，剩余 {part.stock_quantity}")
    return part.cost_price


async def release(
    db: AsyncSession,
    part_id: int,
    quantity: int,
    operator_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    notes: Optional[str] = None) -> SparePart:
    """退回配件：增加库存（已停用的配件也可以退回）"""
    if quantity <= 0:
        raise ValidationFailed("退回数量必须大于0")

    part = await get_spare_part(db, part_id, active_only=False)
    await db.execute(
        update(SparePart)
        .where(SparePart.id == part_id)
        .values(stock_quantity=SparePart.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(part)

    _record_movement(
        db, part, "in",
        quantity_before=part.stock_quantity - quantity,
        quantity_after=part.stock_quantity,
        operator_id=operator_id,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes or f"退回 {quantity}")
    await db.flush()

    logger.info(f"📥 配件入库 {part.part_code} +{quantity}，当前 {part.stock_quantity}")
    return part


async def adjust_stock(
    db: AsyncSession,
    part_id: int,
    new_quantity: int,
    reason: str,
    operator_id: Optional[int] = None) -> SparePart:
    """盘点调整：直接设定库存数量"""
    if new_quantity < 0:
        raise ValidationFailed("调整后数量不能为负数")

    part = await get_spare_part(db, part_id)
    old_quantity = part.stock_quantity
    if new_quantity == old_quantity:
        return part

    await db.execute(
        update(SparePart)
        .where(SparePart.id == part_id)
        .values(stock_quantity=new_quantity)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(part)

    _record_movement(
        db, part, "adjustment",
        quantity_before=old_quantity,
        quantity_after=new_quantity,
        operator_id=operator_id,
        reference_type="adjustment",
        notes=reason)
    await db.flush()

    logger.info(f"📝 盘点调整 {part.part_code}: {old_quantity} → {new_quantity}（{reason}）")
    return part


async def list_movements(
    db: AsyncSession,
    part_id: int,
    page: int = 1,
    limit: int = 10) -> Tuple[List[StockMovement], int]:
    """配件库存流水（新的在前）"""
    await get_spare_part(db, part_id, active_only=False)

    count_result = await db.execute(
        select(func.count(StockMovement.id)).where(StockMovement.spare_part_id == part_id)
    )
    total = count_result.scalar() or 0

    result = await db.execute(
        select(StockMovement)
        .where(StockMovement.spare_part_id == part_id)
        .order_by(StockMovement.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def low_stock_parts(db: AsyncSession) -> List[SparePart]:
    """启用中且低于预警线的配件"""
    result = await db.execute(
        select(SparePart)
        .where(SparePart.is_active == True, SparePart.stock_quantity < SparePart.min_stock_level)
        .order_by(SparePart.part_code)
    )
    return list(result.scalars().all())


# ===== 配件档案 =====

async def create_spare_part(
    db: AsyncSession,
    part_in: SparePartCreate,
    operator_id: Optional[int] = None) -> SparePart:
    """新建配件，初始库存记一条入库流水"""
    data = part_in.model_dump()
    initial_quantity = data.pop("stock_quantity")
    for field in MONEY_FIELDS:
        data[field] = Decimal(str(data[field]))

    part = SparePart(
        **data,
        part_code=await generate_part_code(db),
        stock_quantity=initial_quantity,
        is_active=True)
    db.add(part)
    await db.flush()

    if initial_quantity > 0:
        _record_movement(
            db, part, "in",
            quantity_before=0,
            quantity_after=initial_quantity,
            operator_id=operator_id,
            reference_type="adjustment",
            notes="初始库存")
        await db.flush()

    logger.info(f"🔧 新建配件 {part.part_code} {part.name}，初始库存 {initial_quantity}")
    return part


async def update_spare_part(db: AsyncSession, part_id: int, part_in: SparePartUpdate) -> SparePart:
    """更新配件档案（不改库存）"""
    part = await get_spare_part(db, part_id, active_only=False)

    update_data = part_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field in MONEY_FIELDS and value is not None:
            value = Decimal(str(value))
        setattr(part, field, value)
    await db.flush()
    return part


async def delete_spare_part(db: AsyncSession, part_id: int) -> SparePart:
    """停用配件（软删除）"""
    part = await get_spare_part(db, part_id, active_only=False)
    part.is_active = False
    await db.flush()
    logger.info(f"🗑️ 停用配件 {part.part_code}")
    return part


async def list_spare_parts(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    include_inactive: bool = False,
    low_stock_only: bool = False) -> Tuple[List[SparePart], int]:
    """配件列表"""
    conditions = []
    if not include_inactive:
        conditions.append(SparePart.is_active == True)
    if low_stock_only:
        conditions.append(SparePart.stock_quantity < SparePart.min_stock_level)
    if search:
        conditions.append(or_(
            SparePart.part_code.ilike(f"%{search}%"),
            SparePart.name.ilike(f"%{search}%"),
            SparePart.brand.ilike(f"%{search}%"),
        ))

    query = select(SparePart).where(*conditions)
    count_query = select(func.count(SparePart.id)).where(*conditions)

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(SparePart.part_code).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), total
