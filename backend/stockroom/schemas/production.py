"""配方与生产批次Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal


# ===== 配方 =====
class RecipeLineIn(BaseModel):
    ingredient_id: int = Field(..., description="原料ID")
    quantity: Decimal = Field(..., gt=0, description="单位用量")


class RecipeCreate(BaseModel):
    name: str = Field(..., max_length=255, description="配方名称")
    description: Optional[str] = None
    yield_unit: str = Field(default="unit", description="产出单位")
    lines: List[RecipeLineIn] = Field(..., min_length=1, description="物料清单")


class RecipeResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    yield_unit: str
    lines: List[RecipeLineIn]


# ===== 生产批次 =====
class BatchCreate(BaseModel):
    recipe_id: int = Field(..., description="配方ID")
    quantity: Decimal = Field(..., gt=0, description="产出数量")
    notes: Optional[str] = Field(None, max_length=500)


class BatchIngredientResponse(BaseModel):
    """追溯行"""
    ingredient_id: int
    quantity_used: Decimal
    unit: str
    cost_at_time: Optional[Decimal] = None

    class Config:
        from_attributes = True


class BatchResponse(BaseModel):
    id: int
    batch_no: str
    recipe_id: int
    quantity_produced: Decimal
    remaining_quantity: Decimal
    unit: str
    actual_cost: Optional[Decimal] = None
    status: str
    status_display: str = ""
    produced_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    consumed: List[BatchIngredientResponse] = []

    class Config:
        from_attributes = True
