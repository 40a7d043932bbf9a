"""ORM 基类 - 所有模型都继承此 Base"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
