"""
交易API - 收购单 / 销售单
交易记录只新增不修改
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.config import settings
from showroom.core.deps import get_db
from showroom.models.transaction import PurchaseTransaction, SalesTransaction
from showroom.schemas.transaction import (
    PurchaseCreate, SaleCreate,
    PurchaseResponse, SaleResponse,
    PurchaseListResponse, SaleListResponse
)
from showroom.services import transaction_workflow

router = APIRouter()


def _common_fields(txn) -> dict:
    """收购单、销售单共有的响应字段"""
    return dict(
        id=txn.id,
        transaction_number=txn.transaction_number,
        invoice_number=txn.invoice_number,
        vehicle_id=txn.vehicle_id,
        vehicle_code=txn.vehicle.vehicle_code if txn.vehicle else "",
        vehicle_name=txn.vehicle.display_name if txn.vehicle else "",
        customer_id=txn.customer_id,
        customer_name=txn.customer.name if txn.customer else "",
        vehicle_price=float(txn.vehicle_price or 0),
        tax_amount=float(txn.tax_amount or 0),
        total_amount=float(txn.total_amount or 0),
        payment_method=txn.payment_method,
        payment_method_display=txn.payment_method_display,
        payment_reference=txn.payment_reference,
        transaction_date=txn.transaction_date,
        cashier_id=txn.cashier_id,
        cashier_name=txn.cashier.full_name if txn.cashier else "",
        status=txn.status,
        notes=txn.notes,
        created_at=txn.created_at)


def build_purchase_response(purchase: PurchaseTransaction) -> PurchaseResponse:
    return PurchaseResponse(**_common_fields(purchase))


def build_sale_response(sale: SalesTransaction) -> SaleResponse:
    return SaleResponse(
        **_common_fields(sale),
        discount_amount=float(sale.discount_amount or 0))


# ===== 收购 =====

@router.get("/purchases/", response_model=PurchaseListResponse)
async def list_purchases(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="搜索交易号/发票号"),
    vehicle_id: Optional[int] = Query(None, description="按车辆筛选")) -> Any:
    """获取收购单列表"""
    purchases, total = await transaction_workflow.list_purchases(
        db, page=page, limit=limit, search=search, vehicle_id=vehicle_id)
    return PurchaseListResponse(
        data=[build_purchase_response(p) for p in purchases],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/purchases/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase(
    *,
    db: AsyncSession = Depends(get_db),
    purchase_id: int) -> Any:
    """获取收购单详情"""
    purchase = await transaction_workflow.get_purchase(db, purchase_id)
    return build_purchase_response(purchase)


@router.post("/purchases/", response_model=PurchaseResponse)
async def create_purchase(
    *,
    db: AsyncSession = Depends(get_db),
    purchase_in: PurchaseCreate) -> Any:
    """登记收购（车辆回写收购信息，状态改为已收购）"""
    cashier_id = purchase_in.cashier_id or settings.DEFAULT_OPERATOR_ID
    purchase = await transaction_workflow.record_purchase(db, purchase_in, cashier_id)
    await db.commit()
    purchase_id = purchase.id

    db.expire_all()
    purchase = await transaction_workflow.get_purchase(db, purchase_id)
    return build_purchase_response(purchase)


# ===== 销售 =====

@router.get("/sales/", response_model=SaleListResponse)
async def list_sales(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, description="搜索交易号/发票号"),
    vehicle_id: Optional[int] = Query(None, description="按车辆筛选")) -> Any:
    """获取销售单列表"""
    sales, total = await transaction_workflow.list_sales(
        db, page=page, limit=limit, search=search, vehicle_id=vehicle_id)
    return SaleListResponse(
        data=[build_sale_response(s) for s in sales],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/sales/{sale_id}", response_model=SaleResponse)
async def get_sale(
    *,
    db: AsyncSession = Depends(get_db),
    sale_id: int) -> Any:
    """获取销售单详情"""
    sale = await transaction_workflow.get_sale(db, sale_id)
    return build_sale_response(sale)


@router.post("/sales/", response_model=SaleResponse)
async def create_sale(
    *,
    db: AsyncSession = Depends(get_db),
    sale_in: SaleCreate) -> Any:
    """登记销售（仅待售 / 已预订车辆，车辆状态改为已售）"""
    cashier_id = sale_in.cashier_id or settings.DEFAULT_OPERATOR_ID
    sale = await transaction_workflow.record_sale(db, sale_in, cashier_id)
    await db.commit()
    sale_id = sale.id

    db.expire_all()
    sale = await transaction_workflow.get_sale(db, sale_id)
    return build_sale_response(sale)
