"""原料库存API"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.config import settings
from stockroom.core.deps import get_actor_id, get_db
from stockroom.schemas.ingredient import (
    IngredientCreate, IngredientResponse, IngredientListResponse, StockAdjust
)
from stockroom.services import inventory

router = APIRouter()


@router.post("/ingredients", response_model=IngredientResponse, status_code=201)
async def create_ingredient(
    *,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[int] = Depends(get_actor_id),
    ingredient_in: IngredientCreate) -> Any:
    """原料入册"""
    return await inventory.create_ingredient(db, actor_id=actor_id, **ingredient_in.model_dump())


@router.get("/ingredients", response_model=IngredientListResponse)
async def list_ingredients(*, db: AsyncSession = Depends(get_db)) -> Any:
    """原料列表（不含已删除）"""
    items = await inventory.list_ingredients(db)
    return IngredientListResponse(data=items, total=len(items))


@router.get("/ingredients/{ingredient_id}", response_model=IngredientResponse)
async def get_ingredient(*, db: AsyncSession = Depends(get_db), ingredient_id: int) -> Any:
    """原料详情"""
    return await inventory.get_ingredient(db, ingredient_id)


@router.post("/ingredients/{ingredient_id}/adjust", response_model=IngredientResponse)
async def adjust_stock(
    *,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[int] = Depends(get_actor_id),
    ingredient_id: int,
    adjust_in: StockAdjust) -> Any:
    """调整库存（盘点/报损/补录）"""
    return await inventory.adjust_stock(
        db, ingredient_id, adjust_in.delta, adjust_in.reason, actor_id=actor_id
    )


@router.delete("/ingredients/{ingredient_id}", response_model=IngredientResponse)
async def delete_ingredient(
    *,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[int] = Depends(get_actor_id),
    ingredient_id: int) -> Any:
    """删除原料（软删除）"""
    return await inventory.soft_delete_ingredient(db, ingredient_id, actor_id=actor_id)


@router.get("/low-stock", response_model=List[IngredientResponse])
async def low_stock(*, db: AsyncSession = Depends(get_db)) -> Any:
    """低库存原料"""
    return await inventory.get_low_stock(db)


@router.get("/expiring", response_model=List[IngredientResponse])
async def expiring_soon(
    *,
    db: AsyncSession = Depends(get_db),
    days: Optional[int] = Query(None, ge=0, le=365, description="天数，默认取配置")) -> Any:
    """临期原料"""
    return await inventory.get_expiring_soon(db, days=days if days is not None else settings.EXPIRY_WARNING_DAYS)
