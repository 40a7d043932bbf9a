import os
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from showroom.core.config import settings


def build_async_url(uri: str) -> str:
    """把 sqlite:/// 地址换成 aiosqlite 驱动"""
    if uri.startswith("sqlite:///"):
        return uri.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return uri


# 创建异步引擎
# 仅在开发环境打印SQL（通过环境变量控制）
engine = create_async_engine(
    build_async_url(settings.SQLITE_DATABASE_URI),
    echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
    future=True,
)

# 创建异步会话
# autoflush 关闭：服务层在需要读回聚合值之前显式 flush
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
