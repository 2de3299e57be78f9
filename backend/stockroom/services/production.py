"""
生产服务
- create_production_batch：按配方生产并自动扣减原料（受保护操作，强制审计）
- define_recipe：配方维护入口（外围操作，审计尽力而为）

扣料规则：
1. 解析物料清单，对涉及的全部原料一次性按ID升序加锁
2. 先校验全部原料是否足够，任何一项不足则整体失败，不做任何扣减
3. 再统一扣减，成本按锁内读到的单价累计（快照，不受之后改价影响）
4. 写批次、追溯行、一条审计日志，一起提交
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stockroom.core.exceptions import InsufficientStock, InventoryError, NotFound
from stockroom.models.ingredient import Ingredient
from stockroom.models.production_batch import BatchIngredient, ProductionBatch
from stockroom.models.recipe import Recipe, RecipeIngredient
from stockroom.services import audit, bom
from stockroom.services.inventory import crossed_below_minimum, low_stock_payload
from stockroom.services.notifier import BATCH_CREATED, LOW_STOCK, notifier
from stockroom.services.transaction import exclusive_transaction, lock_rows

logger = logging.getLogger(__name__)


@dataclass
class _Consumption:
    ingredient: Ingredient
    needed: Decimal
    old_stock: Decimal = Decimal("0")


def generate_batch_no() -> str:
    """生成批次号：PB + 日期 + 随机串"""
    today = datetime.utcnow().strftime("%Y%m%d")
    return f"PB{today}-{uuid4().hex[:8].upper()}"


def _plan_consumption(
    lines: Sequence[bom.BomLine],
    locked: Dict[int, Optional[Ingredient]],
    quantity: Decimal,
) -> List[_Consumption]:
    """第一遍：只校验不修改，按清单顺序报告第一个不足的原料"""
    plan = []
    for line in lines:
        ingredient = locked.get(line.ingredient_id)
        if ingredient is None or ingredient.is_deleted:
            raise NotFound("ingredient", line.ingredient_id)

        needed = line.quantity_per_unit * quantity
        if ingredient.current_stock < needed:
            raise InsufficientStock(
                resource_type="ingredient",
                resource_id=ingredient.id,
                name=ingredient.name,
                needed=needed,
                available=ingredient.current_stock,
                unit=ingredient.unit,
            )
        plan.append(_Consumption(ingredient=ingredient, needed=needed))
    return plan


async def create_production_batch(
    db: AsyncSession,
    recipe_id: int,
    quantity: Decimal,
    producer_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> ProductionBatch:
    """创建生产批次并扣减原料

    Raises:
        NotFound: 配方或原料不存在
        InvalidRecipe: 配方没有物料清单
        InsufficientStock: 任一原料不足（不做任何扣减）
    """
    quantity = Decimal(str(quantity))
    if quantity <= 0:
        raise ValueError("quantity must be positive")

    try:
        async with exclusive_transaction(db):
            # 1. 解析物料清单
            lines = await bom.resolve(db, recipe_id)
            recipe = await db.get(Recipe, recipe_id)

            # 2. 涉及的原料一次性加锁
            locked = await lock_rows(db, Ingredient, [line.ingredient_id for line in lines])

            # 3. 校验全部原料
            plan = _plan_consumption(lines, locked, quantity)

            # 4. 统一扣减，按锁内单价累计成本
            total_cost = Decimal("0")
            for item in plan:
                item.old_stock = item.ingredient.current_stock
                item.ingredient.current_stock = item.old_stock - item.needed
                total_cost += item.needed * (item.ingredient.cost_per_unit or Decimal("0"))

            # 5. 批次记录
            now = datetime.utcnow()
            batch = ProductionBatch(
                batch_no=generate_batch_no(),
                recipe_id=recipe_id,
                quantity_produced=quantity,
                remaining_quantity=quantity,
                unit=recipe.yield_unit,
                actual_cost=total_cost,
                status="COMPLETED",
                produced_by=producer_id,
                notes=notes,
                started_at=now,
                completed_at=now,
            )
            db.add(batch)
            await db.flush()

            # 6. 追溯行：实际消耗
            for item in plan:
                db.add(BatchIngredient(
                    batch_id=batch.id,
                    ingredient_id=item.ingredient.id,
                    quantity_used=item.needed,
                    unit=item.ingredient.unit,
                    cost_at_time=item.ingredient.cost_per_unit,
                ))
            await db.flush()

            # 7. 审计
            await audit.record(
                db,
                actor_id=producer_id,
                action="CREATE_BATCH",
                resource_type="production_batch",
                resource_id=batch.id,
                resource_name=batch.batch_no,
                description=f"生产 {recipe.name} x {quantity}",
                old_value={str(i.ingredient.id): str(i.old_stock) for i in plan},
                new_value={str(i.ingredient.id): str(i.ingredient.current_stock) for i in plan},
                details={
                    "recipe_id": recipe_id,
                    "quantity": str(quantity),
                    "actual_cost": str(total_cost),
                    "consumed": [
                        {"ingredient_id": i.ingredient.id, "quantity": str(i.needed)}
                        for i in plan
                    ],
                },
            )
    except InventoryError as e:
        logger.warning(f"生产批次创建失败: recipe={recipe_id} quantity={quantity} - {e.kind}: {e.message}")
        raise

    logger.info(f"批次已创建: {batch.batch_no} 配方 {recipe.name} x {quantity}，成本 {total_cost}")

    # 提交之后的通知
    await notifier.publish(BATCH_CREATED, {
        "batch_id": batch.id,
        "batch_no": batch.batch_no,
        "recipe_id": recipe_id,
        "quantity": str(quantity),
    })
    for item in plan:
        if crossed_below_minimum(item.ingredient, item.old_stock):
            await notifier.publish(LOW_STOCK, low_stock_payload(item.ingredient))
    return batch


async def get_batch(db: AsyncSession, batch_id: int) -> ProductionBatch:
    """批次详情（含追溯行）"""
    result = await db.execute(
        select(ProductionBatch)
        .options(selectinload(ProductionBatch.consumed))
        .where(ProductionBatch.id == batch_id)
    )
    batch = result.scalar_one_or_none()
    if not batch or batch.is_deleted:
        raise NotFound("production_batch", batch_id)
    return batch


async def define_recipe(
    db: AsyncSession,
    *,
    name: str,
    lines: Sequence[Tuple[int, Decimal]],
    yield_unit: str = "unit",
    description: Optional[str] = None,
    actor_id: Optional[int] = None,
    recipe_id: Optional[int] = None,
) -> Recipe:
    """新建或替换配方的物料清单

    Args:
        lines: [(原料ID, 单位用量)]，用量必须大于0
    """
    for ingredient_id, qty in lines:
        if Decimal(str(qty)) <= 0:
            raise ValueError(f"quantity for ingredient {ingredient_id} must be positive")

    if recipe_id is not None:
        recipe = await db.get(Recipe, recipe_id)
        if not recipe or recipe.deleted_at is not None:
            raise NotFound("recipe", recipe_id)
        recipe.name = name
        recipe.yield_unit = yield_unit
        recipe.description = description
        await db.execute(delete(RecipeIngredient).where(RecipeIngredient.recipe_id == recipe_id))
    else:
        recipe = Recipe(name=name, yield_unit=yield_unit, description=description, created_by=actor_id)
        db.add(recipe)
        await db.flush()

    for ingredient_id, qty in lines:
        db.add(RecipeIngredient(
            recipe_id=recipe.id,
            ingredient_id=ingredient_id,
            quantity_required=Decimal(str(qty)),
        ))
    await db.commit()
    logger.info(f"配方已保存: {recipe.name}（{len(lines)} 项原料）")

    await audit.log_action(
        db,
        actor_id=actor_id,
        action="DEFINE_RECIPE",
        resource_type="recipe",
        resource_id=recipe.id,
        resource_name=recipe.name,
        details={"lines": [{"ingredient_id": i, "quantity": str(q)} for i, q in lines]},
    )
    return recipe
