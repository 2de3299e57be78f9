"""
测试夹具
- 每个测试一个独立的 SQLite 文件库（NullPool，每个会话独占连接，能真正互相争锁）
- 通知器在每个测试前后清空
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.pool import NullPool

from stockroom.db.init_db import ensure_tables_exist
from stockroom.db.session import build_engine, build_session_factory
from stockroom.models import AuditLog
from stockroom.services import inventory, production
from stockroom.services.notifier import notifier

TEST_ACTOR_ID = 7


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'stockroom_test.db'}"


@pytest.fixture
async def engine(db_url):
    engine = build_engine(db_url, lock_timeout=5.0, poolclass=NullPool)
    await ensure_tables_exist(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture(autouse=True)
def _clear_notifier():
    notifier.clear()
    yield
    notifier.clear()


@pytest.fixture
def make_ingredient(session_factory):
    async def _make(name, current_stock, unit="kg", minimum_stock="0", cost_per_unit="0", **kwargs):
        async with session_factory() as db:
            return await inventory.create_ingredient(
                db,
                name=name,
                unit=unit,
                current_stock=Decimal(str(current_stock)),
                minimum_stock=Decimal(str(minimum_stock)),
                optimal_stock=Decimal(str(kwargs.pop("optimal_stock", minimum_stock))),
                cost_per_unit=Decimal(str(cost_per_unit)),
                **kwargs,
            )
    return _make


@pytest.fixture
def make_recipe(session_factory):
    async def _make(name, lines, yield_unit="unit"):
        async with session_factory() as db:
            return await production.define_recipe(
                db,
                name=name,
                yield_unit=yield_unit,
                lines=[(ingredient.id, Decimal(str(qty))) for ingredient, qty in lines],
            )
    return _make


@pytest.fixture
def fetch(session_factory):
    """按主键读取最新已提交的行"""
    async def _fetch(model, row_id):
        async with session_factory() as db:
            return await db.get(model, row_id)
    return _fetch


@pytest.fixture
def count_rows(session_factory):
    async def _count(model, *conditions):
        async with session_factory() as db:
            query = select(func.count()).select_from(model)
            if conditions:
                query = query.where(*conditions)
            return (await db.execute(query)).scalar()
    return _count


@pytest.fixture
def engine_audit_count(count_rows):
    """库存引擎写入的审计条数（不含外围操作的尽力审计）"""
    async def _count():
        return await count_rows(
            AuditLog,
            AuditLog.action.in_(["STOCK_ADJUSTMENT", "CREATE_BATCH", "EMPLOYEE_SALE"]),
        )
    return _count
