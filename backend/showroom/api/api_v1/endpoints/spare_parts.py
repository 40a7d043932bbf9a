"""配件库存API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.config import settings
from showroom.core.deps import get_db
from showroom.models.spare_part import SparePart, StockMovement
from showroom.schemas.spare_part import (
    SparePartCreate, SparePartUpdate, SparePartAdjust,
    SparePartResponse, SparePartListResponse,
    StockMovementResponse, StockMovementListResponse
)
from showroom.services import inventory

router = APIRouter()


def build_spare_part_response(part: SparePart) -> SparePartResponse:
    """构建配件响应"""
    return SparePartResponse(
        id=part.id,
        part_code=part.part_code,
        name=part.name,
        description=part.description,
        brand=part.brand,
        cost_price=float(part.cost_price or 0),
        selling_price=float(part.selling_price or 0),
        stock_quantity=part.stock_quantity,
        min_stock_level=part.min_stock_level,
        unit_measure=part.unit_measure,
        is_low_stock=part.is_low_stock,
        is_active=bool(part.is_active),
        created_at=part.created_at,
        updated_at=part.updated_at)


def build_movement_response(movement: StockMovement) -> StockMovementResponse:
    """构建库存流水响应"""
    return StockMovementResponse(
        id=movement.id,
        spare_part_id=movement.spare_part_id,
        part_code=movement.spare_part.part_code if movement.spare_part else "",
        part_name=movement.spare_part.name if movement.spare_part else "",
        movement_type=movement.movement_type,
        type_display=movement.type_display,
        reference_type=movement.reference_type,
        reference_id=movement.reference_id,
        quantity_before=movement.quantity_before,
        quantity_moved=movement.quantity_moved,
        quantity_after=movement.quantity_after,
        movement_date=movement.movement_date,
        processed_by=movement.processed_by,
        notes=movement.notes)


async def _reload(db: AsyncSession, part_id: int) -> SparePartResponse:
    db.expire_all()
    part = await inventory.get_spare_part(db, part_id, active_only=False)
    return build_spare_part_response(part)


@router.get("/", response_model=SparePartListResponse)
async def list_spare_parts(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="搜索编码/名称/品牌"),
    low_stock_only: bool = Query(False, description="仅显示低库存"),
    include_inactive: bool = Query(False, description="是否包含已停用配件")) -> Any:
    """获取配件列表"""
    parts, total = await inventory.list_spare_parts(
        db, page=page, limit=limit, search=search,
        include_inactive=include_inactive, low_stock_only=low_stock_only)
    return SparePartListResponse(
        data=[build_spare_part_response(p) for p in parts],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/low-stock", response_model=List[SparePartResponse])
async def list_low_stock_parts(
    *,
    db: AsyncSession = Depends(get_db)) -> Any:
    """低于预警线的配件"""
    parts = await inventory.low_stock_parts(db)
    return [build_spare_part_response(p) for p in parts]


@router.get("/{part_id}", response_model=SparePartResponse)
async def get_spare_part(
    *,
    db: AsyncSession = Depends(get_db),
    part_id: int) -> Any:
    """获取配件详情"""
    part = await inventory.get_spare_part(db, part_id, active_only=False)
    return build_spare_part_response(part)


@router.post("/", response_model=SparePartResponse)
async def create_spare_part(
    *,
    db: AsyncSession = Depends(get_db),
    part_in: SparePartCreate) -> Any:
    """新建配件（编码自动生成）"""
    part = await inventory.create_spare_part(db, part_in, operator_id=settings.DEFAULT_OPERATOR_ID)
    await db.commit()
    return await _reload(db, part.id)


@router.put("/{part_id}", response_model=SparePartResponse)
async def update_spare_part(
    *,
    db: AsyncSession = Depends(get_db),
    part_id: int,
    part_in: SparePartUpdate) -> Any:
    """更新配件（不含库存数量）"""
    await inventory.update_spare_part(db, part_id, part_in)
    await db.commit()
    return await _reload(db, part_id)


@router.delete("/{part_id}")
async def delete_spare_part(
    *,
    db: AsyncSession = Depends(get_db),
    part_id: int) -> Any:
    """删除配件（软删除，设置为不启用）"""
    await inventory.delete_spare_part(db, part_id)
    await db.commit()
    return {"message": "配件已停用"}


@router.post("/{part_id}/adjust", response_model=SparePartResponse)
async def adjust_spare_part_stock(
    *,
    db: AsyncSession = Depends(get_db),
    part_id: int,
    adjust_in: SparePartAdjust) -> Any:
    """库存调整（盘点）"""
    await inventory.adjust_stock(
        db, part_id, adjust_in.new_quantity, adjust_in.reason,
        operator_id=settings.DEFAULT_OPERATOR_ID)
    await db.commit()
    return await _reload(db, part_id)


@router.get("/{part_id}/movements", response_model=StockMovementListResponse)
async def list_spare_part_movements(
    *,
    db: AsyncSession = Depends(get_db),
    part_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)) -> Any:
    """获取配件库存流水"""
    movements, total = await inventory.list_movements(db, part_id, page=page, limit=limit)
    return StockMovementListResponse(
        data=[build_movement_response(m) for m in movements],
        total=total,
        page=page,
        limit=limit
    )
