"""
车辆模型

状态流转：
    purchased(已收购) → in_repair(维修中) → ready_to_sell(待售) → reserved(已预订) → sold(已售)
    另外 ready_to_sell → in_repair 合法（待售车辆随时可以再开维修单）

- 车辆编码 VEH-NNN 自动生成；车架号录入后不可修改
- total_repair_cost 为累计维修成本，维修单完成时累加
"""
import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from showroom.db.base import Base


class VehicleStatus(str, enum.Enum):
    """车辆状态"""
    PURCHASED = "purchased"
    IN_REPAIR = "in_repair"
    READY_TO_SELL = "ready_to_sell"
    RESERVED = "reserved"
    SOLD = "sold"

    @property
    def display(self) -> str:
        return VEHICLE_STATUS_DISPLAY[self.value]


VEHICLE_STATUS_DISPLAY = {
    "purchased": "已收购",
    "in_repair": "维修中",
    "ready_to_sell": "待售",
    "reserved": "已预订",
    "sold": "已售",
}

# 可销售的状态
SELLABLE_STATUSES = (VehicleStatus.READY_TO_SELL.value, VehicleStatus.RESERVED.value)


class Vehicle(Base):
    """车辆 - 车行的库存车"""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_code = Column(String(20), unique=True, nullable=False, index=True, comment="车辆编码 VEH-NNN")
    chassis_number = Column(String(50), unique=True, nullable=False, comment="车架号（不可修改）")
    license_plate = Column(String(20), comment="车牌号")

    # 车辆基础信息
    brand = Column(String(50), nullable=False, comment="品牌")
    model = Column(String(50), nullable=False, comment="车型")
    variant = Column(String(50), comment="款型")
    year = Column(Integer, nullable=False, comment="年份")
    color = Column(String(30), comment="颜色")
    mileage = Column(Integer, comment="里程")
    fuel_type = Column(String(20), comment="燃料：gasoline/diesel/electric/hybrid")
    transmission = Column(String(20), comment="变速箱：manual/automatic/cvt")

    # 金额
    purchase_price = Column(DECIMAL(15, 2), comment="收购价")
    total_repair_cost = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="累计维修成本")
    suggested_selling_price = Column(DECIMAL(15, 2), comment="建议售价")
    approved_selling_price = Column(DECIMAL(15, 2), comment="核准售价")
    final_selling_price = Column(DECIMAL(15, 2), comment="成交价")

    status = Column(String(20), nullable=False, default=VehicleStatus.PURCHASED.value, index=True, comment="状态")

    # 收购/销售关联
    purchased_from_customer_id = Column(Integer, ForeignKey("customers.id"), comment="收购来源客户")
    sold_to_customer_id = Column(Integer, ForeignKey("customers.id"), comment="销售对象客户")
    purchased_by_cashier = Column(Integer, ForeignKey("users.id"), comment="收购经办人")
    sold_by_cashier = Column(Integer, ForeignKey("users.id"), comment="销售经办人")
    price_approved_by_admin = Column(Integer, ForeignKey("users.id"), comment="售价核准人")
    purchased_at = Column(DateTime, comment="收购时间")
    sold_at = Column(DateTime, comment="销售时间")

    purchase_notes = Column(Text, comment="收购备注")
    condition_notes = Column(Text, comment="车况备注")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系（仅用于展示）
    purchased_from_customer = relationship("Customer", foreign_keys=[purchased_from_customer_id], lazy="joined")
    sold_to_customer = relationship("Customer", foreign_keys=[sold_to_customer_id], lazy="joined")

    def __repr__(self):
        return f"<Vehicle {self.vehicle_code} {self.brand} {self.model} ({self.status})>"

    @property
    def display_name(self) -> str:
        """显示名称：品牌 车型 年份"""
        return f"{self.brand} {self.model} {self.year}"

    @property
    def status_display(self) -> str:
        return VEHICLE_STATUS_DISPLAY.get(self.status, self.status)

    @property
    def is_sellable(self) -> bool:
        return self.status in SELLABLE_STATUSES

    @property
    def cost_basis(self) -> Decimal:
        """成本 = 收购价 + 累计维修成本"""
        return (self.purchase_price or Decimal("0")) + (self.total_repair_cost or Decimal("0"))
