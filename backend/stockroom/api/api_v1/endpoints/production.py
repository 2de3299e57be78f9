"""配方与生产批次API"""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.deps import get_actor_id, get_db
from stockroom.schemas.production import (
    BatchCreate, BatchResponse, RecipeCreate, RecipeResponse
)
from stockroom.services import production

router = APIRouter()


@router.post("/recipes", response_model=RecipeResponse, status_code=201)
async def create_recipe(
    *,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[int] = Depends(get_actor_id),
    recipe_in: RecipeCreate) -> Any:
    """新建配方"""
    recipe = await production.define_recipe(
        db,
        name=recipe_in.name,
        yield_unit=recipe_in.yield_unit,
        description=recipe_in.description,
        lines=[(line.ingredient_id, line.quantity) for line in recipe_in.lines],
        actor_id=actor_id,
    )
    return RecipeResponse(
        id=recipe.id,
        name=recipe.name,
        description=recipe.description,
        yield_unit=recipe.yield_unit,
        lines=recipe_in.lines,
    )


@router.post("/batches", response_model=BatchResponse, status_code=201)
async def create_batch(
    *,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[int] = Depends(get_actor_id),
    batch_in: BatchCreate) -> Any:
    """创建生产批次（自动扣减原料）"""
    batch = await production.create_production_batch(
        db, batch_in.recipe_id, batch_in.quantity, producer_id=actor_id, notes=batch_in.notes
    )
    # 重新加载追溯行
    return await production.get_batch(db, batch.id)


@router.get("/batches/{batch_id}", response_model=BatchResponse)
async def get_batch(*, db: AsyncSession = Depends(get_db), batch_id: int) -> Any:
    """批次详情（含原料追溯）"""
    return await production.get_batch(db, batch_id)
