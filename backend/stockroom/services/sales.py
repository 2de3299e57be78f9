"""
销售出库服务 - 员工内购从成品批次扣减
与库存调整同一套纪律：锁批次行 -> 校验 -> 扣减 -> 写销售单 -> 写审计，一起提交
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.exceptions import InsufficientStock, InventoryError, NotFound
from stockroom.models.employee_sale import EmployeeSale
from stockroom.models.production_batch import ProductionBatch
from stockroom.services import audit
from stockroom.services.transaction import run_exclusive

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("CASH", "CREDIT_CARD", "BANK_TRANSFER", "EMPLOYEE_DEDUCTION")

_CENT = Decimal("0.01")


def calculate_final_amount(quantity: Decimal, unit_price: Decimal, discount_percentage: Decimal) -> Decimal:
    """实收金额 = 数量 × 单价 × (1 - 折扣%)，保留两位小数"""
    gross = quantity * unit_price
    discount = gross * discount_percentage / Decimal("100")
    return (gross - discount).quantize(_CENT, rounding=ROUND_HALF_UP)


async def fulfill_sale(
    db: AsyncSession,
    batch_id: int,
    quantity: Decimal,
    seller_id: Optional[int] = None,
    buyer_id: Optional[int] = None,
    unit_price: Decimal = Decimal("0"),
    discount_percentage: Decimal = Decimal("0"),
    payment_method: str = "CASH",
    notes: Optional[str] = None,
) -> EmployeeSale:
    """从批次出货

    Raises:
        NotFound: 批次不存在或已删除
        InsufficientStock: 批次剩余数量不足
    """
    quantity = Decimal(str(quantity))
    unit_price = Decimal(str(unit_price))
    discount_percentage = Decimal(str(discount_percentage))
    if quantity <= 0:
        raise ValueError("quantity must be positive")
    if payment_method not in PAYMENT_METHODS:
        raise ValueError(f"unsupported payment method: {payment_method}")

    async def _apply(session: AsyncSession, locked: dict):
        batch = locked[batch_id]
        if batch is None or batch.is_deleted:
            raise NotFound("production_batch", batch_id)

        remaining = batch.remaining_quantity
        if remaining < quantity:
            raise InsufficientStock(
                resource_type="production_batch",
                resource_id=batch.id,
                name=f"batch {batch.batch_no}",
                needed=quantity,
                available=remaining,
                unit=batch.unit,
            )

        batch.remaining_quantity = remaining - quantity

        sale = EmployeeSale(
            batch_id=batch.id,
            seller_id=seller_id,
            buyer_id=buyer_id,
            quantity_sold=quantity,
            unit=batch.unit,
            unit_price=unit_price,
            discount_percentage=discount_percentage,
            final_amount=calculate_final_amount(quantity, unit_price, discount_percentage),
            payment_method=payment_method,
            notes=notes,
        )
        session.add(sale)
        await session.flush()

        await audit.record(
            session,
            actor_id=seller_id,
            action="EMPLOYEE_SALE",
            resource_type="employee_sale",
            resource_id=sale.id,
            resource_name=batch.batch_no,
            description=f"员工内购 {batch.batch_no} x {quantity}",
            old_value={"remaining_quantity": str(remaining)},
            new_value={"remaining_quantity": str(batch.remaining_quantity)},
            details={
                "batch_id": batch.id,
                "buyer_id": buyer_id,
                "quantity": str(quantity),
                "final_amount": str(sale.final_amount),
            },
        )
        return sale

    try:
        sale = await run_exclusive(db, ProductionBatch, [batch_id], _apply)
    except InventoryError as e:
        logger.warning(f"销售出库被拒绝: batch={batch_id} quantity={quantity} - {e.kind}: {e.message}")
        raise

    logger.info(f"员工内购完成: sale={sale.id} batch={batch_id} quantity={quantity}")
    return sale
