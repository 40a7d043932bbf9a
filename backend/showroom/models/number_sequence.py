"""
编号计数器

每个 (前缀, 周期) 一行，取号时 last_value + 1。
- 按日编号：REP-20240115-001，period = "20240115"
- 不分日期：VEH-001，period = ""
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint

from showroom.db.base import Base


class NumberSequence(Base):
    """编号计数器"""
    __tablename__ = "number_sequences"
    __table_args__ = (
        UniqueConstraint("prefix", "period", name="uq_sequence_prefix_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    prefix = Column(String(20), nullable=False, comment="编号前缀")
    period = Column(String(8), nullable=False, default="", comment="周期（YYYYMMDD，空串表示不分日期）")
    last_value = Column(Integer, nullable=False, default=0, comment="已发出的最大序号")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<NumberSequence {self.prefix}/{self.period or '-'} = {self.last_value}>"
