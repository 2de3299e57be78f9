"""原料Schema"""
from typing import Optional, List
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal


class IngredientCreate(BaseModel):
    """原料入册"""
    name: str = Field(..., max_length=255, description="原料名称")
    code: Optional[str] = Field(None, max_length=100, description="原料编码")
    unit: str = Field(..., description="计量单位")
    current_stock: Decimal = Field(default=Decimal("0"), ge=0, description="初始库存")
    minimum_stock: Decimal = Field(default=Decimal("0"), ge=0, description="最低库存")
    optimal_stock: Decimal = Field(default=Decimal("0"), ge=0, description="理想库存")
    cost_per_unit: Decimal = Field(default=Decimal("0"), ge=0, description="成本单价")
    expiry_date: Optional[date] = Field(None, description="过期日期")
    supplier_name: Optional[str] = Field(None, max_length=255, description="供应商")

    @validator("unit")
    def check_unit(cls, v: str) -> str:
        if v not in ("kg", "g", "liter", "ml", "unit", "pack"):
            raise ValueError(f"不支持的单位: {v}")
        return v


class StockAdjust(BaseModel):
    """库存调整（正数增加，负数减少）"""
    delta: Decimal = Field(..., description="变动数量")
    reason: str = Field(..., min_length=1, max_length=200, description="调整原因")

    @validator("delta")
    def check_delta(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("变动数量不能为0")
        return v


class IngredientResponse(BaseModel):
    """原料响应"""
    id: int
    name: str
    code: Optional[str] = None
    unit: str
    current_stock: Decimal
    minimum_stock: Decimal
    optimal_stock: Decimal
    cost_per_unit: Decimal
    expiry_date: Optional[date] = None
    supplier_name: Optional[str] = None
    is_low_stock: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class IngredientListResponse(BaseModel):
    data: List[IngredientResponse]
    total: int
