"""事务协调器：驱动层异常翻译"""

import pytest
from sqlalchemy.exc import DBAPIError

from stockroom.core.exceptions import LockTimeout, StorageFailure
from stockroom.models import Ingredient
from stockroom.services.transaction import exclusive_transaction, is_lock_timeout, lock_rows


class _PgError(Exception):
    """asyncpg 风格的驱动异常，SQLSTATE 在 sqlstate 属性上"""

    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


def _wrapped(sqlstate, message="could not obtain lock on row in relation \"ingredients\""):
    # asyncpg 的 PostgresError 经 SQLAlchemy 包装后是 DBAPIError，而不是 OperationalError
    return DBAPIError("SELECT ... FOR UPDATE", {}, _PgError(message, sqlstate))


def test_lock_not_available_sqlstate_is_a_lock_timeout():
    assert is_lock_timeout(_wrapped("55P03"))
    assert not is_lock_timeout(_wrapped("23505", message="duplicate key value"))


async def test_postgres_lock_error_in_transaction_becomes_lock_timeout(session_factory):
    async with session_factory() as db:
        with pytest.raises(LockTimeout) as exc_info:
            async with exclusive_transaction(db):
                raise _wrapped("55P03")

    assert exc_info.value.status_code == 503


async def test_other_driver_error_in_transaction_becomes_storage_failure(session_factory):
    async with session_factory() as db:
        with pytest.raises(StorageFailure):
            async with exclusive_transaction(db):
                raise _wrapped("23505", message="duplicate key value")


async def test_postgres_lock_error_while_locking_names_the_row(session_factory, make_ingredient, monkeypatch):
    flour = await make_ingredient("Flour", 10)

    async def blocked_execute(*args, **kwargs):
        raise _wrapped("55P03")

    async with session_factory() as db:
        monkeypatch.setattr(db, "execute", blocked_execute)
        with pytest.raises(LockTimeout) as exc_info:
            async with exclusive_transaction(db):
                await lock_rows(db, Ingredient, [flour.id])

    assert exc_info.value.resource_type == "ingredients"
    assert exc_info.value.resource_id == flour.id
