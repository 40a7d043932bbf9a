"""
交易流程 - 收购 / 销售

交易记录创建后不再修改；同一个工作单元里把成交信息回写到车辆上。
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.core.exceptions import TransactionNotFound, VehicleNotAvailable
from showroom.models.transaction import PurchaseTransaction, SalesTransaction
from showroom.models.vehicle import VehicleStatus, SELLABLE_STATUSES
from showroom.schemas.transaction import PurchaseCreate, SaleCreate
from showroom.services.directory import get_active_customer, get_user
from showroom.services.numbering import generate_purchase_numbers, generate_sale_numbers
from showroom.services.vehicle_registry import get_vehicle, set_status

logger = logging.getLogger(__name__)


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(Decimal("0.01"))


async def record_purchase(
    db: AsyncSession,
    purchase_in: PurchaseCreate,
    cashier_id: int) -> PurchaseTransaction:
    """
    登记收购

    合计 = 车价 + 税费；车辆回写收购价、来源客户、经办人，状态改为已收购
    """
    vehicle = await get_vehicle(db, purchase_in.vehicle_id)
    customer = await get_active_customer(db, purchase_in.customer_id)
    await get_user(db, cashier_id)

    vehicle_price = _money(purchase_in.vehicle_price)
    tax_amount = _money(purchase_in.tax_amount)
    transaction_number, invoice_number = await generate_purchase_numbers(db)
    now = datetime.utcnow()

    purchase = PurchaseTransaction(
        transaction_number=transaction_number,
        invoice_number=invoice_number,
        vehicle_id=vehicle.id,
        customer_id=customer.id,
        vehicle_price=vehicle_price,
        tax_amount=tax_amount,
        total_amount=vehicle_price + tax_amount,
        payment_method=purchase_in.payment_method,
        payment_reference=purchase_in.payment_reference,
        transaction_date=now,
        cashier_id=cashier_id,
        status="completed",
        notes=purchase_in.notes)
    db.add(purchase)

    vehicle.purchase_price = vehicle_price
    vehicle.purchased_from_customer_id = customer.id
    vehicle.purchased_by_cashier = cashier_id
    vehicle.purchased_at = now
    await set_status(db, vehicle, VehicleStatus.PURCHASED)

    logger.info(f"🧾 收购 {transaction_number} 车辆 {vehicle.vehicle_code} 合计 {purchase.total_amount}")
    return purchase


async def record_sale(
    db: AsyncSession,
    sale_in: SaleCreate,
    cashier_id: int) -> SalesTransaction:
    """
    登记销售

    只有待售 / 已预订的车辆可以销售。
    合计 = 车价 + 税费 - 折扣（不做下限保护）；车辆回写成交价、买方、经办人，状态改为已售
    """
    vehicle = await get_vehicle(db, sale_in.vehicle_id)
    customer = await get_active_customer(db, sale_in.customer_id)

    if vehicle.status not in SELLABLE_STATUSES:
        logger.warning(f"⚠️ 销售被拒：车辆 {vehicle.vehicle_code} 当前状态 {vehicle.status}")
        raise VehicleNotAvailable(vehicle.vehicle_code, vehicle.status)

    await get_user(db, cashier_id)

    vehicle_price = _money(sale_in.vehicle_price)
    tax_amount = _money(sale_in.tax_amount)
    discount_amount = _money(sale_in.discount_amount)
    transaction_number, invoice_number = await generate_sale_numbers(db)
    now = datetime.utcnow()

    sale = SalesTransaction(
        transaction_number=transaction_number,
        invoice_number=invoice_number,
        vehicle_id=vehicle.id,
        customer_id=customer.id,
        vehicle_price=vehicle_price,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total_amount=vehicle_price + tax_amount - discount_amount,
        payment_method=sale_in.payment_method,
        payment_reference=sale_in.payment_reference,
        transaction_date=now,
        cashier_id=cashier_id,
        status="completed",
        notes=sale_in.notes)
    db.add(sale)

    vehicle.final_selling_price = vehicle_price
    vehicle.sold_to_customer_id = customer.id
    vehicle.sold_by_cashier = cashier_id
    vehicle.sold_at = now
    await set_status(db, vehicle, VehicleStatus.SOLD)

    logger.info(f"🧾 销售 {transaction_number} 车辆 {vehicle.vehicle_code} 合计 {sale.total_amount}")
    return sale


async def get_purchase(db: AsyncSession, purchase_id: int) -> PurchaseTransaction:
    purchase = await db.get(PurchaseTransaction, purchase_id)
    if not purchase:
        raise TransactionNotFound("收购单不存在")
    return purchase


async def get_sale(db: AsyncSession, sale_id: int) -> SalesTransaction:
    sale = await db.get(SalesTransaction, sale_id)
    if not sale:
        raise TransactionNotFound("销售单不存在")
    return sale


async def _list_transactions(
    db: AsyncSession,
    model,
    page: int,
    limit: int,
    search: Optional[str],
    vehicle_id: Optional[int]) -> Tuple[list, int]:
    conditions = []
    if vehicle_id:
        conditions.append(model.vehicle_id == vehicle_id)
    if search:
        conditions.append(or_(
            model.transaction_number.ilike(f"%{search}%"),
            model.invoice_number.ilike(f"%{search}%"),
        ))

    count_result = await db.execute(select(func.count(model.id)).where(*conditions))
    total = count_result.scalar() or 0

    result = await db.execute(
        select(model)
        .where(*conditions)
        .order_by(model.transaction_date.desc(), model.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().unique().all()), total


async def list_purchases(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    vehicle_id: Optional[int] = None) -> Tuple[List[PurchaseTransaction], int]:
    return await _list_transactions(db, PurchaseTransaction, page, limit, search, vehicle_id)


async def list_sales(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    vehicle_id: Optional[int] = None) -> Tuple[List[SalesTransaction], int]:
    return await _list_transactions(db, SalesTransaction, page, limit, search, vehicle_id)
