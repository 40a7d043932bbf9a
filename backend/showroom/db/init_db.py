from showroom.db.session import engine
from showroom.db.base import Base

# 导入所有模型，确保表能被创建
from showroom.models import (  # noqa: F401
    User, Customer, Vehicle, SparePart, StockMovement,
    Repair, RepairPart, PurchaseTransaction, SalesTransaction, NumberSequence
)


async def init_db(bind=None) -> None:
    """
    初始化数据库 - 创建所有表
    """
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_tables_exist() -> None:
    """
    确保数据库表存在（应用启动时调用）
    """
    await init_db()
