"""
员工模型 - 只做目录查询（经办收银员、维修技师）
认证与会话不在本系统范围内
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime

from showroom.db.base import Base


class User(Base):
    """员工"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20))
    # admin(管理员), mechanic(维修技师), cashier(收银员)
    role = Column(String(20), nullable=False, default="cashier", comment="角色")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"

    @property
    def role_display(self) -> str:
        role_map = {
            "admin": "管理员",
            "mechanic": "维修技师",
            "cashier": "收银员",
        }
        return role_map.get(self.role, self.role)
