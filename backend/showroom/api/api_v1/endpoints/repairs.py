"""
维修单API
- 开单、更新、状态变更
- 领料 / 退料（联动配件库存）
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.config import settings
from showroom.core.deps import get_db
from showroom.models.repair import Repair, RepairPart, RepairStatus
from showroom.schemas.repair import (
    RepairCreate, RepairUpdate, RepairStatusUpdate, RepairPartCreate,
    RepairResponse, RepairPartResponse, RepairListResponse
)
from showroom.services import repair_workflow

router = APIRouter()


def build_repair_part_response(line: RepairPart) -> RepairPartResponse:
    """构建用料明细响应"""
    return RepairPartResponse(
        id=line.id,
        repair_id=line.repair_id,
        spare_part_id=line.spare_part_id,
        part_code=line.spare_part.part_code if line.spare_part else "",
        part_name=line.spare_part.name if line.spare_part else "",
        quantity_used=line.quantity_used,
        unit_cost=float(line.unit_cost or 0),
        total_cost=float(line.total_cost or 0),
        used_at=line.used_at,
        notes=line.notes)


def build_repair_response(repair: Repair) -> RepairResponse:
    """构建维修单响应（需要已加载 parts）"""
    return RepairResponse(
        id=repair.id,
        repair_number=repair.repair_number,
        vehicle_id=repair.vehicle_id,
        vehicle_code=repair.vehicle.vehicle_code if repair.vehicle else "",
        vehicle_name=repair.vehicle.display_name if repair.vehicle else "",
        title=repair.title,
        description=repair.description,
        labor_cost=float(repair.labor_cost or 0),
        total_parts_cost=float(repair.total_parts_cost or 0),
        total_cost=float(repair.total_cost or 0),
        status=repair.status,
        status_display=repair.status_display,
        mechanic_id=repair.mechanic_id,
        mechanic_name=repair.mechanic.full_name if repair.mechanic else "",
        started_at=repair.started_at,
        completed_at=repair.completed_at,
        created_at=repair.created_at,
        work_notes=repair.work_notes,
        parts=[build_repair_part_response(p) for p in repair.parts])


async def _reload(db: AsyncSession, repair_id: int) -> RepairResponse:
    """提交后重新加载维修单及明细"""
    db.expire_all()
    repair = await repair_workflow.load_repair(db, repair_id)
    return build_repair_response(repair)


@router.get("/", response_model=RepairListResponse)
async def list_repairs(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="搜索单号/标题/车辆编码"),
    status: Optional[RepairStatus] = Query(None, description="按状态筛选"),
    vehicle_id: Optional[int] = Query(None, description="按车辆筛选")) -> Any:
    """获取维修单列表"""
    repairs, total = await repair_workflow.list_repairs(
        db, page=page, limit=limit, search=search,
        status=status.value if status else None, vehicle_id=vehicle_id)
    return RepairListResponse(
        data=[build_repair_response(r) for r in repairs],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/{repair_id}", response_model=RepairResponse)
async def get_repair(
    *,
    db: AsyncSession = Depends(get_db),
    repair_id: int) -> Any:
    """获取维修单详情"""
    repair = await repair_workflow.load_repair(db, repair_id)
    return build_repair_response(repair)


@router.post("/", response_model=RepairResponse)
async def create_repair(
    *,
    db: AsyncSession = Depends(get_db),
    repair_in: RepairCreate) -> Any:
    """开维修单（车辆进入维修中）"""
    repair = await repair_workflow.create_repair(db, repair_in)
    await db.commit()
    return await _reload(db, repair.id)


@router.put("/{repair_id}", response_model=RepairResponse)
async def update_repair(
    *,
    db: AsyncSession = Depends(get_db),
    repair_id: int,
    repair_in: RepairUpdate) -> Any:
    """更新维修单"""
    await repair_workflow.update_repair(db, repair_id, repair_in)
    await db.commit()
    return await _reload(db, repair_id)


@router.put("/{repair_id}/status", response_model=RepairResponse)
async def update_repair_status(
    *,
    db: AsyncSession = Depends(get_db),
    repair_id: int,
    status_in: RepairStatusUpdate) -> Any:
    """变更维修单状态（完工时成本累加到车辆，车辆回到待售）"""
    await repair_workflow.update_status(db, repair_id, status_in.status)
    await db.commit()
    return await _reload(db, repair_id)


@router.post("/{repair_id}/parts", response_model=RepairResponse)
async def add_repair_part(
    *,
    db: AsyncSession = Depends(get_db),
    repair_id: int,
    part_in: RepairPartCreate) -> Any:
    """领料"""
    await repair_workflow.add_part(db, repair_id, part_in, operator_id=settings.DEFAULT_OPERATOR_ID)
    await db.commit()
    return await _reload(db, repair_id)


@router.delete("/{repair_id}/parts/{line_id}", response_model=RepairResponse)
async def remove_repair_part(
    *,
    db: AsyncSession = Depends(get_db),
    repair_id: int,
    line_id: int) -> Any:
    """退料"""
    await repair_workflow.remove_part(db, repair_id, line_id, operator_id=settings.DEFAULT_OPERATOR_ID)
    await db.commit()
    return await _reload(db, repair_id)
