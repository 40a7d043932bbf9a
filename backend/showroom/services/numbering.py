"""
编号生成服务

- 按日编号：REP-20240115-001（维修单、收购单、销售单、发票）
- 不分日期：VEH-001（车辆、客户、配件）

每个 (前缀, 周期) 在 number_sequences 表里有一行计数器，取号就是一条
UPDATE last_value = last_value + 1。计数器第一次使用时，按业务表里已有的
最大编号续号，旧数据导入后不会撞号。
两个请求同时首次使用同一计数器时，建行用 INSERT ... ON CONFLICT DO NOTHING，
后到的一方落到已有行上继续 +1。
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.models.number_sequence import NumberSequence
from showroom.models.vehicle import Vehicle
from showroom.models.customer import Customer
from showroom.models.spare_part import SparePart
from showroom.models.repair import Repair
from showroom.models.transaction import PurchaseTransaction, SalesTransaction

logger = logging.getLogger(__name__)


def _parse_suffix(code: str) -> int:
    """取编号最后一段的序号，解析失败按 0 处理"""
    try:
        return int(code.rsplit("-", 1)[-1])
    except (ValueError, AttributeError):
        return 0


async def _scan_max_suffix(db: AsyncSession, column, base: str) -> int:
    """扫描业务表中以 base 开头的编号，返回最大序号"""
    result = await db.execute(select(column).where(column.like(f"{base}%")))
    suffixes = [_parse_suffix(code) for code in result.scalars().all()]
    return max(suffixes, default=0)


async def _increment(db: AsyncSession, prefix: str, period: str) -> Optional[int]:
    """已有计数器 +1 并返回新值；计数器不存在返回 None"""
    result = await db.execute(
        update(NumberSequence)
        .where(NumberSequence.prefix == prefix, NumberSequence.period == period)
        .values(last_value=NumberSequence.last_value + 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return None
    value_result = await db.execute(
        select(NumberSequence.last_value)
        .where(NumberSequence.prefix == prefix, NumberSequence.period == period)
    )
    return value_result.scalar_one()


async def next_sequence(db: AsyncSession, prefix: str, period: str, column) -> int:
    """
    取下一个序号

    Args:
        prefix: 编号前缀，如 REP、INV-PUR
        period: 周期（YYYYMMDD），不分日期时传空串
        column: 业务表的编号列，计数器首次使用时用来续号
    """
    value = await _increment(db, prefix, period)
    if value is not None:
        return value

    # 计数器不存在：按已有编号建行，已被别的请求建好则跳过
    base = f"{prefix}-{period}-" if period else f"{prefix}-"
    seed = await _scan_max_suffix(db, column, base)
    await db.execute(
        sqlite_insert(NumberSequence)
        .values(prefix=prefix, period=period, last_value=seed, updated_at=datetime.utcnow())
        .on_conflict_do_nothing(index_elements=["prefix", "period"])
    )
    if seed:
        logger.info(f"🔢 编号计数器 {prefix}/{period or '-'} 从已有编号 {seed} 续号")
    return await _increment(db, prefix, period)


async def generate_daily_number(db: AsyncSession, prefix: str, column) -> str:
    """生成按日编号：PREFIX-YYYYMMDD-NNN"""
    date_str = datetime.utcnow().strftime("%Y%m%d")
    seq = await next_sequence(db, prefix, date_str, column)
    return f"{prefix}-{date_str}-{seq:03d}"


async def generate_code(db: AsyncSession, prefix: str, column) -> str:
    """生成不分日期的编码：PREFIX-NNN"""
    seq = await next_sequence(db, prefix, "", column)
    return f"{prefix}-{seq:03d}"


async def generate_vehicle_code(db: AsyncSession) -> str:
    return await generate_code(db, "VEH", Vehicle.vehicle_code)


async def generate_customer_code(db: AsyncSession) -> str:
    return await generate_code(db, "CUST", Customer.customer_code)


async def generate_part_code(db: AsyncSession) -> str:
    return await generate_code(db, "PART", SparePart.part_code)


async def generate_repair_number(db: AsyncSession) -> str:
    return await generate_daily_number(db, "REP", Repair.repair_number)


async def generate_purchase_numbers(db: AsyncSession) -> Tuple[str, str]:
    """收购单号 + 发票号"""
    transaction_number = await generate_daily_number(db, "PUR", PurchaseTransaction.transaction_number)
    invoice_number = await generate_daily_number(db, "INV-PUR", PurchaseTransaction.invoice_number)
    return transaction_number, invoice_number


async def generate_sale_numbers(db: AsyncSession) -> Tuple[str, str]:
    """销售单号 + 发票号"""
    transaction_number = await generate_daily_number(db, "SAL", SalesTransaction.transaction_number)
    invoice_number = await generate_daily_number(db, "INV-SAL", SalesTransaction.invoice_number)
    return transaction_number, invoice_number
