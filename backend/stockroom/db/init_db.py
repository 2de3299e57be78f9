
from sqlalchemy.ext.asyncio import AsyncEngine

from stockroom.db.base import Base
from stockroom.db import session as db_session

# 导入所有模型，确保表能被创建
from stockroom.models import (  # noqa: F401
    Ingredient, Recipe, RecipeIngredient, ProductionBatch, BatchIngredient,
    EmployeeSale, AuditLog
)


async def ensure_tables_exist(engine: AsyncEngine = None) -> None:
    """
    确保数据库表存在（应用启动时调用）
    """
    engine = engine or db_session.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
