"""
加锁事务协调器

一个业务操作 = 一个事务：
1. 开启事务（exclusive_transaction）
2. 按 ID 升序逐行加锁（lock_rows），避免不同操作交叉加锁导致死锁
3. 业务逻辑读旧值、算新值、写库存、写审计
4. 正常退出则提交；任何异常都回滚，锁随事务释放

存储层异常在这里统一翻译：锁等待超时 -> LockTimeout，其余 -> StorageFailure
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, TypeVar

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.config import settings
from stockroom.core.exceptions import InventoryError, LockTimeout, StorageFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL lock_not_available
_PG_LOCK_NOT_AVAILABLE = "55P03"


def is_lock_timeout(exc: DBAPIError) -> bool:
    """判断是否为锁等待超时

    asyncpg 的错误经 SQLAlchemy 包装后是 DBAPIError（不一定是 OperationalError），
    SQLSTATE 挂在 orig 上
    """
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == _PG_LOCK_NOT_AVAILABLE:
        return True
    message = str(orig or exc).lower()
    return "database is locked" in message or "lock timeout" in message


def _dialect_name(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


@asynccontextmanager
async def exclusive_transaction(db: AsyncSession, lock_timeout: Optional[float] = None):
    """开启一个受保护的工作单元

    会话上不能已有未结束的事务，否则无法保证整个操作只有一个提交点。
    """
    if db.in_transaction():
        raise RuntimeError("exclusive_transaction requires a session without an open transaction")

    timeout = lock_timeout if lock_timeout is not None else settings.LOCK_TIMEOUT_SECONDS
    try:
        async with db.begin():
            if _dialect_name(db) == "postgresql":
                # SET LOCAL 只在当前事务内生效
                await db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout * 1000)}ms'"))
            yield db
    except InventoryError:
        raise
    except DBAPIError as exc:
        if is_lock_timeout(exc):
            logger.warning(f"锁等待超时: {exc}")
            raise LockTimeout("Timed out waiting for a row lock") from exc
        logger.error(f"存储失败: {exc}")
        raise StorageFailure(f"Storage failure: {exc.orig or exc}") from exc
    except SQLAlchemyError as exc:
        logger.error(f"存储失败: {exc}")
        raise StorageFailure(f"Storage failure: {exc}") from exc


async def lock_rows(db: AsyncSession, model, ids: Iterable[int]) -> Dict[int, Any]:
    """按 ID 升序对每一行加排他锁

    Returns:
        {id: 行对象}，行不存在时值为 None，由调用方决定按“未找到”处理
    """
    rows: Dict[int, Any] = {}
    for row_id in sorted(set(ids)):
        try:
            result = await db.execute(
                select(model)
                .where(model.id == row_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        except DBAPIError as exc:
            if is_lock_timeout(exc):
                logger.warning(f"锁等待超时: {model.__tablename__}:{row_id}")
                raise LockTimeout(
                    f"Timed out waiting for lock on {model.__tablename__} {row_id}",
                    resource_type=model.__tablename__,
                    resource_id=row_id,
                ) from exc
            raise
        rows[row_id] = result.scalar_one_or_none()
    return rows


async def run_exclusive(
    db: AsyncSession,
    model,
    ids: Iterable[int],
    body: Callable[[AsyncSession, Dict[int, Any]], Awaitable[T]],
    lock_timeout: Optional[float] = None,
) -> T:
    """锁定 ids 对应的所有行后执行 body，body 抛异常则整体回滚"""
    async with exclusive_transaction(db, lock_timeout=lock_timeout):
        locked = await lock_rows(db, model, ids)
        return await body(db, locked)
