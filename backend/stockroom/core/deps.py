"""依赖注入（认证不在本服务范围内，操作人由上游通过请求头传入）"""
from typing import AsyncGenerator, Optional

from fastapi import Header
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.db import session as db_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取数据库会话依赖
    """
    async with db_session.SessionLocal() as session:
        yield session


async def get_actor_id(x_user_id: Optional[int] = Header(None)) -> Optional[int]:
    """当前操作人ID，缺省视为系统操作"""
    return x_user_id
