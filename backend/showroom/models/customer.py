"""
客户模型

同一个客户既可能把车卖给车行（收购来源），也可能从车行买车（销售对象）。
删除为软删除：is_active = False，历史交易仍能关联到客户。
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from showroom.db.base import Base


class Customer(Base):
    """客户"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    customer_code = Column(String(20), unique=True, nullable=False, index=True, comment="客户编码 CUST-NNN")
    name = Column(String(100), nullable=False, index=True, comment="名称")

    # 联系信息
    phone = Column(String(20), comment="电话")
    email = Column(String(100), comment="邮箱")
    address = Column(Text, comment="地址")
    id_card_number = Column(String(50), comment="证件号")

    # individual(个人), corporate(企业)
    type = Column(String(20), nullable=False, default="individual", comment="客户类型")

    is_active = Column(Boolean, default=True, comment="是否启用")

    # 审计字段
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User", foreign_keys=[created_by], lazy="joined")

    def __repr__(self):
        return f"<Customer {self.customer_code} {self.name}>"

    @property
    def type_display(self) -> str:
        return {"individual": "个人", "corporate": "企业"}.get(self.type, self.type)
