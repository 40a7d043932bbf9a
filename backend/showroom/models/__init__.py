# models包初始化文件
# 车辆生命周期：收购 → 维修（消耗配件库存）→ 销售

from showroom.models.user import User
from showroom.models.customer import Customer
from showroom.models.vehicle import Vehicle, VehicleStatus
from showroom.models.spare_part import SparePart, StockMovement
from showroom.models.repair import Repair, RepairPart, RepairStatus
from showroom.models.transaction import PurchaseTransaction, SalesTransaction
from showroom.models.number_sequence import NumberSequence

__all__ = [
    "User",
    "Customer",
    "Vehicle",
    "VehicleStatus",
    "SparePart",
    "StockMovement",
    "Repair",
    "RepairPart",
    "RepairStatus",
    "PurchaseTransaction",
    "SalesTransaction",
    "NumberSequence",
]
