"""员工内购：从批次剩余数量扣减"""

from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from stockroom.core.exceptions import InsufficientStock, NotFound, StorageFailure
from stockroom.models import AuditLog, EmployeeSale, ProductionBatch
from stockroom.services import audit, production, sales

from tests.conftest import TEST_ACTOR_ID


@pytest.fixture
async def batch(session_factory, make_ingredient, make_recipe):
    cocoa = await make_ingredient("Cocoa Mass", 1000, cost_per_unit="4")
    recipe = await make_recipe("Milk Chocolate Bar", [(cocoa, "0.1")], yield_unit="bar")
    async with session_factory() as db:
        return await production.create_production_batch(db, recipe.id, 50)


async def test_sale_decrements_remaining_and_records_sale(
    session_factory, batch, fetch, engine_audit_count
):
    async with session_factory() as db:
        sale = await sales.fulfill_sale(
            db, batch.id, 12,
            seller_id=TEST_ACTOR_ID, buyer_id=31,
            unit_price=Decimal("2.50"), discount_percentage=Decimal("20"),
            payment_method="EMPLOYEE_DEDUCTION",
        )

    reloaded = await fetch(ProductionBatch, batch.id)
    assert reloaded.remaining_quantity == Decimal("38")
    assert reloaded.quantity_produced == Decimal("50")

    assert sale.quantity_sold == Decimal("12")
    assert sale.unit == "bar"
    assert sale.final_amount == Decimal("24.00")
    assert sale.buyer_id == 31

    # 建批次 + 销售，各一条
    assert await engine_audit_count() == 2
    async with session_factory() as db:
        entry = (await db.execute(
            select(AuditLog).where(AuditLog.action == "EMPLOYEE_SALE")
        )).scalar_one()
    assert entry.resource_id == sale.id
    assert entry.details["batch_id"] == batch.id
    assert Decimal(entry.new_value["remaining_quantity"]) == Decimal("38")


async def test_oversell_is_rejected_atomically(session_factory, batch, fetch, count_rows, engine_audit_count):
    async with session_factory() as db:
        with pytest.raises(InsufficientStock) as exc_info:
            await sales.fulfill_sale(db, batch.id, Decimal("50.5"), seller_id=TEST_ACTOR_ID, buyer_id=31)

    assert exc_info.value.resource_type == "production_batch"
    assert exc_info.value.resource_id == batch.id
    assert (await fetch(ProductionBatch, batch.id)).remaining_quantity == Decimal("50")
    assert await count_rows(EmployeeSale) == 0
    assert await engine_audit_count() == 1


async def test_selling_the_whole_batch_depletes_it(session_factory, batch, fetch):
    async with session_factory() as db:
        await sales.fulfill_sale(db, batch.id, 50, buyer_id=31)

    reloaded = await fetch(ProductionBatch, batch.id)
    assert reloaded.is_depleted


async def test_unknown_batch_is_not_found(session_factory, count_rows):
    async with session_factory() as db:
        with pytest.raises(NotFound):
            await sales.fulfill_sale(db, 123, 1, buyer_id=31)
    assert await count_rows(EmployeeSale) == 0


def test_final_amount_rounds_to_cents():
    assert sales.calculate_final_amount(Decimal("3"), Decimal("1.99"), Decimal("15")) == Decimal("5.07")
    assert sales.calculate_final_amount(Decimal("1"), Decimal("10"), Decimal("0")) == Decimal("10.00")


async def test_failed_audit_write_rolls_back_the_sale(
    session_factory, batch, fetch, count_rows, engine_audit_count, monkeypatch
):
    async def broken_record(*args, **kwargs):
        raise OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))

    monkeypatch.setattr(audit, "record", broken_record)

    async with session_factory() as db:
        with pytest.raises(StorageFailure):
            await sales.fulfill_sale(db, batch.id, 5, seller_id=TEST_ACTOR_ID, buyer_id=31)

    assert (await fetch(ProductionBatch, batch.id)).remaining_quantity == Decimal("50")
    assert await count_rows(EmployeeSale) == 0
    # 只剩建批次那一条
    assert await engine_audit_count() == 1
