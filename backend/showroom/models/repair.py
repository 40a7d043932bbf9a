"""
维修单模型

状态流转：
    pending(待维修) → in_progress(维修中) → completed(已完成)
    pending / in_progress → cancelled(已取消)

金额字段都是派生值，不接受直接写入：
    total_parts_cost = Σ 用料明细.total_cost
    total_cost = labor_cost + total_parts_cost
"""
import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, CheckConstraint
from sqlalchemy.orm import relationship

from showroom.db.base import Base


class RepairStatus(str, enum.Enum):
    """维修单状态"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


REPAIR_STATUS_DISPLAY = {
    "pending": "待维修",
    "in_progress": "维修中",
    "completed": "已完成",
    "cancelled": "已取消",
}


class Repair(Base):
    """维修单"""
    __tablename__ = "repairs"

    id = Column(Integer, primary_key=True, index=True)
    repair_number = Column(String(30), unique=True, nullable=False, index=True, comment="维修单号 REP-YYYYMMDD-NNN")
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)

    title = Column(String(100), nullable=False, comment="标题")
    description = Column(Text, comment="描述")

    # 金额（派生）
    labor_cost = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="工时费")
    total_parts_cost = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="配件合计")
    total_cost = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="维修总成本")

    status = Column(String(20), nullable=False, default=RepairStatus.PENDING.value, index=True, comment="状态")
    mechanic_id = Column(Integer, ForeignKey("users.id"), comment="维修技师")

    started_at = Column(DateTime, comment="开工时间")
    completed_at = Column(DateTime, comment="完工时间")
    created_at = Column(DateTime, default=datetime.utcnow)
    work_notes = Column(Text, comment="施工备注")

    # 关系
    vehicle = relationship("Vehicle", foreign_keys=[vehicle_id], lazy="joined")
    mechanic = relationship("User", foreign_keys=[mechanic_id], lazy="joined")
    parts = relationship(
        "RepairPart",
        back_populates="repair",
        cascade="all, delete-orphan",
        order_by="RepairPart.id",
    )

    def __repr__(self):
        return f"<Repair {self.repair_number} ({self.status})>"

    @property
    def status_display(self) -> str:
        return REPAIR_STATUS_DISPLAY.get(self.status, self.status)

    @property
    def is_closed(self) -> bool:
        return self.status in (RepairStatus.COMPLETED.value, RepairStatus.CANCELLED.value)


class RepairPart(Base):
    """维修用料明细 - 领用一次记一行，移除时直接删除"""
    __tablename__ = "repair_parts"
    __table_args__ = (
        CheckConstraint("quantity_used > 0", name="ck_repair_part_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    repair_id = Column(Integer, ForeignKey("repairs.id", ondelete="CASCADE"), nullable=False, index=True)
    spare_part_id = Column(Integer, ForeignKey("spare_parts.id"), nullable=False, index=True)

    quantity_used = Column(Integer, nullable=False, comment="领用数量")
    # 领用时的成本价快照，之后配件调价不影响
    unit_cost = Column(DECIMAL(15, 2), nullable=False, comment="单位成本（快照）")
    total_cost = Column(DECIMAL(15, 2), nullable=False, comment="小计 = 单位成本 × 数量")

    used_at = Column(DateTime, default=datetime.utcnow, comment="领用时间")
    notes = Column(Text, comment="备注")

    repair = relationship("Repair", back_populates="parts")
    spare_part = relationship("SparePart", foreign_keys=[spare_part_id], lazy="joined")

    def __repr__(self):
        return f"<RepairPart {self.repair_id}:{self.spare_part_id} x{self.quantity_used}>"
