"""依赖注入 - 单机版（无认证）"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from showroom.db.session import SessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取数据库会话依赖

    一个请求就是一个工作单元：服务层只 flush，由端点统一 commit；
    请求中途抛出异常时整体回滚，不留下半截写入。
    """
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
