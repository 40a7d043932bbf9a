"""
配件模型 - 维修用料库存

- stock_quantity 任何时候都不能为负
- min_stock_level 只是预警线，不做强制约束
- 每次库存变动都记一条 StockMovement 流水
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL, CheckConstraint
from sqlalchemy.orm import relationship

from showroom.db.base import Base


class SparePart(Base):
    """配件"""
    __tablename__ = "spare_parts"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_spare_part_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    part_code = Column(String(20), unique=True, nullable=False, index=True, comment="配件编码 PART-NNN")
    name = Column(String(100), nullable=False, index=True, comment="名称")
    description = Column(Text, comment="描述")
    brand = Column(String(50), comment="品牌")

    # 价格
    cost_price = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="成本价")
    selling_price = Column(DECIMAL(15, 2), nullable=False, default=Decimal("0.00"), comment="售价")

    # 库存
    stock_quantity = Column(Integer, nullable=False, default=0, comment="当前库存")
    min_stock_level = Column(Integer, nullable=False, default=0, comment="最低库存预警线")
    unit_measure = Column(String(20), comment="计量单位")

    is_active = Column(Boolean, default=True, comment="是否启用")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SparePart {self.part_code} = {self.stock_quantity}>"

    @property
    def is_low_stock(self) -> bool:
        """是否低于预警线"""
        return (self.stock_quantity or 0) < (self.min_stock_level or 0)


class StockMovement(Base):
    """库存流水 - 记录每次库存变动"""
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    spare_part_id = Column(Integer, ForeignKey("spare_parts.id"), nullable=False, index=True)

    # 流水类型
    # in: 入库（维修退料、初始库存）
    # out: 出库（维修领料）
    # adjustment: 盘点调整
    movement_type = Column(String(20), nullable=False, comment="流水类型")

    # 关联业务：repair / purchase / sales / adjustment
    reference_type = Column(String(20), comment="关联业务类型")
    reference_id = Column(Integer, comment="关联业务ID")

    # 变动前后数量（用于追溯）
    quantity_before = Column(Integer, nullable=False, comment="变动前数量")
    quantity_moved = Column(Integer, nullable=False, comment="变动数量（正数增加，负数减少）")
    quantity_after = Column(Integer, nullable=False, comment="变动后数量")

    movement_date = Column(DateTime, default=datetime.utcnow, comment="变动时间")
    processed_by = Column(Integer, ForeignKey("users.id"), comment="经办人")
    notes = Column(Text, comment="备注")

    spare_part = relationship("SparePart", foreign_keys=[spare_part_id], lazy="joined")

    def __repr__(self):
        return f"<StockMovement {self.spare_part_id}: {self.movement_type} {self.quantity_moved:+d}>"

    @property
    def type_display(self) -> str:
        type_map = {
            "in": "入库",
            "out": "出库",
            "adjustment": "盘点调整",
        }
        return type_map.get(self.movement_type, self.movement_type)
