"""
车辆管理API
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.config import settings
from showroom.core.deps import get_db
from showroom.models.vehicle import Vehicle, VehicleStatus
from showroom.schemas.vehicle import (
    VehicleCreate,
    VehicleUpdate,
    VehicleStatusUpdate,
    VehiclePriceApprove,
    VehicleResponse,
    VehicleListResponse)
from showroom.services import vehicle_registry

router = APIRouter()


def _float(value) -> Optional[float]:
    return float(value) if value is not None else None


def build_vehicle_response(vehicle: Vehicle) -> VehicleResponse:
    """构建车辆响应"""
    return VehicleResponse(
        id=vehicle.id,
        vehicle_code=vehicle.vehicle_code,
        chassis_number=vehicle.chassis_number,
        license_plate=vehicle.license_plate,
        brand=vehicle.brand,
        model=vehicle.model,
        variant=vehicle.variant,
        year=vehicle.year,
        color=vehicle.color,
        mileage=vehicle.mileage,
        fuel_type=vehicle.fuel_type,
        transmission=vehicle.transmission,
        display_name=vehicle.display_name,
        purchase_price=_float(vehicle.purchase_price),
        total_repair_cost=float(vehicle.total_repair_cost or 0),
        cost_basis=float(vehicle.cost_basis),
        suggested_selling_price=_float(vehicle.suggested_selling_price),
        approved_selling_price=_float(vehicle.approved_selling_price),
        final_selling_price=_float(vehicle.final_selling_price),
        status=vehicle.status,
        status_display=vehicle.status_display,
        purchased_from_customer_id=vehicle.purchased_from_customer_id,
        purchased_from_customer_name=vehicle.purchased_from_customer.name if vehicle.purchased_from_customer else "",
        sold_to_customer_id=vehicle.sold_to_customer_id,
        sold_to_customer_name=vehicle.sold_to_customer.name if vehicle.sold_to_customer else "",
        purchased_by_cashier=vehicle.purchased_by_cashier,
        sold_by_cashier=vehicle.sold_by_cashier,
        price_approved_by_admin=vehicle.price_approved_by_admin,
        purchased_at=vehicle.purchased_at,
        sold_at=vehicle.sold_at,
        purchase_notes=vehicle.purchase_notes,
        condition_notes=vehicle.condition_notes,
        created_at=vehicle.created_at,
        updated_at=vehicle.updated_at)


async def _reload(db: AsyncSession, vehicle_id: int) -> VehicleResponse:
    """提交后重新加载，拿到数据库里的最新值"""
    db.expire_all()
    vehicle = await vehicle_registry.get_vehicle(db, vehicle_id)
    return build_vehicle_response(vehicle)


@router.get("/", response_model=VehicleListResponse)
async def list_vehicles(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="搜索编码/车架号/车牌/品牌/车型"),
    status: Optional[VehicleStatus] = Query(None, description="按状态筛选")) -> Any:
    """获取车辆列表"""
    vehicles, total = await vehicle_registry.list_vehicles(
        db, page=page, limit=limit, search=search,
        status=status.value if status else None)
    return VehicleListResponse(
        data=[build_vehicle_response(v) for v in vehicles],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    vehicle_id: int) -> Any:
    """获取单个车辆详情"""
    vehicle = await vehicle_registry.get_vehicle(db, vehicle_id)
    return build_vehicle_response(vehicle)


@router.post("/", response_model=VehicleResponse)
async def create_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    vehicle_in: VehicleCreate) -> Any:
    """车辆入库"""
    vehicle = await vehicle_registry.create_vehicle(db, vehicle_in, operator_id=settings.DEFAULT_OPERATOR_ID)
    await db.commit()
    return await _reload(db, vehicle.id)


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    vehicle_id: int,
    vehicle_in: VehicleUpdate) -> Any:
    """更新车辆"""
    await vehicle_registry.update_vehicle(db, vehicle_id, vehicle_in)
    await db.commit()
    return await _reload(db, vehicle_id)


@router.put("/{vehicle_id}/status", response_model=VehicleResponse)
async def update_vehicle_status(
    *,
    db: AsyncSession = Depends(get_db),
    vehicle_id: int,
    status_in: VehicleStatusUpdate,
    strict: bool = Query(False, description="按状态图校验")) -> Any:
    """
    修改车辆状态

    默认直接写入；strict=true 时只允许状态图上的流转
    """
    vehicle = await vehicle_registry.get_vehicle(db, vehicle_id)
    if strict:
        await vehicle_registry.transition_status(db, vehicle, status_in.status)
    else:
        await vehicle_registry.set_status(db, vehicle, status_in.status)
    await db.commit()
    return await _reload(db, vehicle_id)


@router.put("/{vehicle_id}/approve-price", response_model=VehicleResponse)
async def approve_vehicle_price(
    *,
    db: AsyncSession = Depends(get_db),
    vehicle_id: int,
    approve_in: VehiclePriceApprove) -> Any:
    """核准售价"""
    approver_id = approve_in.approved_by or settings.DEFAULT_OPERATOR_ID
    await vehicle_registry.approve_selling_price(
        db, vehicle_id, approve_in.approved_selling_price, approver_id)
    await db.commit()
    return await _reload(db, vehicle_id)


@router.delete("/{vehicle_id}")
async def delete_vehicle(
    *,
    db: AsyncSession = Depends(get_db),
    vehicle_id: int) -> Any:
    """删除车辆（物理删除，已有维修单或交易记录时拒绝）"""
    await vehicle_registry.delete_vehicle(db, vehicle_id)
    await db.commit()
    return {"message": "车辆已删除"}
