"""物料清单解析 - 只读，不负责加锁（调用方对解析出的原料加锁）"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.exceptions import InvalidRecipe, NotFound
from stockroom.models.recipe import Recipe, RecipeIngredient


@dataclass(frozen=True)
class BomLine:
    ingredient_id: int
    quantity_per_unit: Decimal


async def resolve(db: AsyncSession, recipe_id: int) -> List[BomLine]:
    """返回生产一个单位产出所需的 (原料, 单位用量) 列表，按行ID排序"""
    recipe = await db.get(Recipe, recipe_id)
    if not recipe or recipe.deleted_at is not None or not recipe.is_active:
        raise NotFound("recipe", recipe_id)

    result = await db.execute(
        select(RecipeIngredient)
        .where(RecipeIngredient.recipe_id == recipe_id)
        .order_by(RecipeIngredient.id)
    )
    lines = result.scalars().all()

    if not lines:
        raise InvalidRecipe(
            f"Recipe {recipe.name} has no ingredients defined",
            resource_type="recipe",
            resource_id=recipe_id,
        )

    resolved = []
    for line in lines:
        quantity = Decimal(line.quantity_required)
        if quantity <= 0:
            raise InvalidRecipe(
                f"Recipe {recipe.name} requires a non-positive quantity of ingredient {line.ingredient_id}",
                resource_type="recipe",
                resource_id=recipe_id,
                detail={"ingredient_id": line.ingredient_id},
            )
        resolved.append(BomLine(ingredient_id=line.ingredient_id, quantity_per_unit=quantity))
    return resolved
