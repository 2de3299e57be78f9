"""
原料库存服务
- adjust_stock：手动调整（受保护操作，强制审计）
- create_ingredient / soft_delete_ingredient：原料入册与下架（外围操作，审计尽力而为）
- get_low_stock / get_expiring_soon：只读查询，读取最近一次提交的值
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.exceptions import InvalidAdjustment, InventoryError, NotFound
from stockroom.models.ingredient import Ingredient
from stockroom.services import audit
from stockroom.services.notifier import LOW_STOCK, notifier
from stockroom.services.transaction import run_exclusive

logger = logging.getLogger(__name__)


def crossed_below_minimum(ingredient: Ingredient, old_quantity: Decimal) -> bool:
    """本次变动是否让库存从“不低于最低库存”变为“低于最低库存”"""
    minimum = ingredient.minimum_stock or Decimal("0")
    return old_quantity >= minimum and ingredient.current_stock < minimum


def low_stock_payload(ingredient: Ingredient) -> dict:
    return {
        "ingredient_id": ingredient.id,
        "name": ingredient.name,
        "current_stock": str(ingredient.current_stock),
        "minimum_stock": str(ingredient.minimum_stock),
        "unit": ingredient.unit,
    }


async def adjust_stock(
    db: AsyncSession,
    ingredient_id: int,
    delta: Decimal,
    reason: str,
    actor_id: Optional[int] = None,
) -> Ingredient:
    """调整原料库存

    Args:
        delta: 变动量，正数增加、负数减少
        reason: 调整原因，写入审计日志

    Raises:
        NotFound: 原料不存在或已删除
        InvalidAdjustment: 调整后库存为负
    """
    delta = Decimal(str(delta))

    async def _apply(session: AsyncSession, locked: dict):
        ingredient = locked[ingredient_id]
        if ingredient is None or ingredient.is_deleted:
            raise NotFound("ingredient", ingredient_id)

        old_stock = ingredient.current_stock
        new_stock = old_stock + delta
        if new_stock < 0:
            raise InvalidAdjustment(
                f"Adjustment would result in negative stock for {ingredient.name}: "
                f"have {old_stock}{ingredient.unit}, change {delta}{ingredient.unit}",
                resource_type="ingredient",
                resource_id=ingredient_id,
                detail={"current_stock": str(old_stock), "delta": str(delta)},
            )

        ingredient.current_stock = new_stock
        await session.flush()

        await audit.record(
            session,
            actor_id=actor_id,
            action="STOCK_ADJUSTMENT",
            resource_type="ingredient",
            resource_id=ingredient.id,
            resource_name=ingredient.name,
            description=f"库存调整 {ingredient.name}: {old_stock} -> {new_stock}",
            old_value={"current_stock": str(old_stock)},
            new_value={"current_stock": str(new_stock)},
            details={"reason": reason, "delta": str(delta)},
        )
        return ingredient, old_stock

    try:
        ingredient, old_stock = await run_exclusive(db, Ingredient, [ingredient_id], _apply)
    except InventoryError as e:
        logger.warning(f"库存调整被拒绝: ingredient={ingredient_id} delta={delta} - {e.kind}: {e.message}")
        raise

    logger.info(f"库存已调整: {ingredient.name} {old_stock} -> {ingredient.current_stock}（{reason}）")

    # 提交之后的通知，失败不影响结果
    if crossed_below_minimum(ingredient, old_stock):
        await notifier.publish(LOW_STOCK, low_stock_payload(ingredient))
    return ingredient


async def create_ingredient(
    db: AsyncSession,
    *,
    name: str,
    unit: str,
    current_stock: Decimal = Decimal("0"),
    minimum_stock: Decimal = Decimal("0"),
    optimal_stock: Decimal = Decimal("0"),
    cost_per_unit: Decimal = Decimal("0"),
    code: Optional[str] = None,
    expiry_date: Optional[date] = None,
    supplier_name: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> Ingredient:
    """原料入册（初始库存由入库给定）"""
    ingredient = Ingredient(
        name=name,
        code=code,
        unit=unit,
        current_stock=current_stock,
        minimum_stock=minimum_stock,
        optimal_stock=optimal_stock,
        cost_per_unit=cost_per_unit,
        expiry_date=expiry_date,
        supplier_name=supplier_name,
        created_by=actor_id,
    )
    db.add(ingredient)
    await db.commit()
    logger.info(f"新增原料: {ingredient.name} 初始库存 {ingredient.current_stock}{ingredient.unit}")

    await audit.log_action(
        db,
        actor_id=actor_id,
        action="CREATE_INGREDIENT",
        resource_type="ingredient",
        resource_id=ingredient.id,
        resource_name=ingredient.name,
        details={"current_stock": str(ingredient.current_stock), "unit": ingredient.unit},
    )
    return ingredient


async def soft_delete_ingredient(
    db: AsyncSession, ingredient_id: int, actor_id: Optional[int] = None
) -> Ingredient:
    """软删除原料，保留审计与追溯关联"""
    ingredient = await db.get(Ingredient, ingredient_id)
    if not ingredient or ingredient.is_deleted:
        raise NotFound("ingredient", ingredient_id)

    ingredient.deleted_at = datetime.utcnow()
    ingredient.is_active = False
    await db.commit()
    logger.info(f"原料已删除: {ingredient.name}")

    await audit.log_action(
        db,
        actor_id=actor_id,
        action="DELETE_INGREDIENT",
        resource_type="ingredient",
        resource_id=ingredient.id,
        resource_name=ingredient.name,
    )
    return ingredient


async def get_ingredient(db: AsyncSession, ingredient_id: int) -> Ingredient:
    ingredient = await db.get(Ingredient, ingredient_id)
    if not ingredient or ingredient.is_deleted:
        raise NotFound("ingredient", ingredient_id)
    return ingredient


async def list_ingredients(db: AsyncSession) -> List[Ingredient]:
    result = await db.execute(
        select(Ingredient).where(Ingredient.deleted_at.is_(None)).order_by(Ingredient.name)
    )
    return list(result.scalars().all())


async def get_low_stock(db: AsyncSession) -> List[Ingredient]:
    """低于最低库存的原料"""
    result = await db.execute(
        select(Ingredient)
        .where(
            Ingredient.deleted_at.is_(None),
            Ingredient.current_stock < Ingredient.minimum_stock,
        )
        .order_by(Ingredient.current_stock)
    )
    return list(result.scalars().all())


async def get_expiring_soon(db: AsyncSession, days: int = 7, today: Optional[date] = None) -> List[Ingredient]:
    """days 天内过期（含已过期）的原料"""
    today = today or date.today()
    result = await db.execute(
        select(Ingredient)
        .where(
            Ingredient.deleted_at.is_(None),
            Ingredient.expiry_date.is_not(None),
            Ingredient.expiry_date <= today + timedelta(days=days),
        )
        .order_by(Ingredient.expiry_date)
    )
    return list(result.scalars().all())
