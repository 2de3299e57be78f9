"""
数据库引擎与会话

行锁实现：
- PostgreSQL：SELECT ... FOR UPDATE 行锁 + SET LOCAL lock_timeout
- SQLite：不支持行锁，每个事务以 BEGIN IMMEDIATE 开启，直接拿整库写锁；
  busy timeout 即锁等待上限

SQLite 的限制：写锁是库级的，连只读会话也要排队，涉及不同原料的操作
同样被串行化，不能并行执行。需要不同行之间真正并行时请用 PostgreSQL。
"""

import os

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from stockroom.core.config import settings


def normalize_database_url(url: str) -> str:
    """sqlite:/// 统一改用异步驱动 aiosqlite"""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def build_engine(url: str, lock_timeout: float = None, **kwargs) -> AsyncEngine:
    """创建异步引擎

    Args:
        url: 数据库地址
        lock_timeout: 锁等待上限（秒），默认取配置
    """
    url = normalize_database_url(url)
    timeout = lock_timeout if lock_timeout is not None else settings.LOCK_TIMEOUT_SECONDS
    is_sqlite = url.startswith("sqlite")

    connect_args = kwargs.pop("connect_args", {})
    if is_sqlite:
        connect_args.setdefault("timeout", timeout)

    engine = create_async_engine(
        url,
        echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
        connect_args=connect_args,
        **kwargs,
    )
    if is_sqlite:
        _install_sqlite_locking(engine)
    return engine


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    """每个事务（包括只读查询）开头都拿库级写锁，同一时刻只有一个事务在跑"""
    # 关闭 pysqlite 自带的隐式事务，由我们自己发 BEGIN IMMEDIATE
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


# 创建异步引擎与会话
engine = build_engine(settings.DATABASE_URI)
SessionLocal = build_session_factory(engine)
