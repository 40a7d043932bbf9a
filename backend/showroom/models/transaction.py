"""
交易模型 - 收购单与销售单

两类交易都是只追加的财务事实：创建后不再修改。
status 目前只会是 completed；cancelled 仅为兼容历史数据保留。
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from showroom.db.base import Base


PAYMENT_METHOD_DISPLAY = {
    "cash": "现金",
    "transfer": "转账",
    "check": "支票",
    "credit": "分期",
}

TRANSACTION_STATUS_DISPLAY = {
    "completed": "已完成",
    "cancelled": "已作废",
}


class PurchaseTransaction(Base):
    """收购单 - 车行从客户处收车"""
    __tablename__ = "purchase_transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_number = Column(String(30), unique=True, nullable=False, index=True, comment="交易号 PUR-YYYYMMDD-NNN")
    invoice_number = Column(String(30), unique=True, nullable=False, comment="发票号 INV-PUR-YYYYMMDD-NNN")

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    vehicle_price = Column(DECIMAL(15, 2), nullable=False, comment="车价")
    tax_amount = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="税费")
    total_amount = Column(DECIMAL(15, 2), nullable=False, comment="合计 = 车价 + 税费")

    payment_method = Column(String(20), nullable=False, comment="付款方式：cash/transfer/check")
    payment_reference = Column(String(100), comment="付款凭证号")

    transaction_date = Column(DateTime, default=datetime.utcnow, index=True)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=False, comment="经办收银员")
    status = Column(String(20), nullable=False, default="completed")
    notes = Column(Text, comment="备注")
    created_at = Column(DateTime, default=datetime.utcnow)

    vehicle = relationship("Vehicle", foreign_keys=[vehicle_id], lazy="joined")
    customer = relationship("Customer", foreign_keys=[customer_id], lazy="joined")
    cashier = relationship("User", foreign_keys=[cashier_id], lazy="joined")

    def __repr__(self):
        return f"<PurchaseTransaction {self.transaction_number} {self.total_amount}>"

    @property
    def payment_method_display(self) -> str:
        return PAYMENT_METHOD_DISPLAY.get(self.payment_method, self.payment_method)


class SalesTransaction(Base):
    """销售单 - 车行把车卖给客户"""
    __tablename__ = "sales_transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_number = Column(String(30), unique=True, nullable=False, index=True, comment="交易号 SAL-YYYYMMDD-NNN")
    invoice_number = Column(String(30), unique=True, nullable=False, comment="发票号 INV-SAL-YYYYMMDD-NNN")

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    vehicle_price = Column(DECIMAL(15, 2), nullable=False, comment="车价")
    tax_amount = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="税费")
    discount_amount = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="折扣")
    # 不做下限保护：折扣大于车价+税费时合计为负
    total_amount = Column(DECIMAL(15, 2), nullable=False, comment="合计 = 车价 + 税费 - 折扣")

    payment_method = Column(String(20), nullable=False, comment="付款方式：cash/transfer/check/credit")
    payment_reference = Column(String(100), comment="付款凭证号")

    transaction_date = Column(DateTime, default=datetime.utcnow, index=True)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=False, comment="经办收银员")
    status = Column(String(20), nullable=False, default="completed")
    notes = Column(Text, comment="备注")
    created_at = Column(DateTime, default=datetime.utcnow)

    vehicle = relationship("Vehicle", foreign_keys=[vehicle_id], lazy="joined")
    customer = relationship("Customer", foreign_keys=[customer_id], lazy="joined")
    cashier = relationship("User", foreign_keys=[cashier_id], lazy="joined")

    def __repr__(self):
        return f"<SalesTransaction {self.transaction_number} {self.total_amount}>"

    @property
    def payment_method_display(self) -> str:
        return PAYMENT_METHOD_DISPLAY.get(self.payment_method, self.payment_method)
