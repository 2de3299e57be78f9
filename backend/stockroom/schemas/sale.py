"""员工内购Schema"""
from typing import Optional, Literal
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal


class EmployeeSaleCreate(BaseModel):
    batch_id: int = Field(..., description="批次ID")
    buyer_id: int = Field(..., description="购买员工ID")
    quantity_sold: Decimal = Field(..., gt=0, description="销售数量")
    unit_price: Decimal = Field(default=Decimal("0"), ge=0, description="单价")
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="折扣%")
    payment_method: Literal["CASH", "CREDIT_CARD", "BANK_TRANSFER", "EMPLOYEE_DEDUCTION"] = "CASH"
    notes: Optional[str] = Field(None, max_length=500)


class EmployeeSaleResponse(BaseModel):
    id: int
    batch_id: int
    seller_id: Optional[int] = None
    buyer_id: Optional[int] = None
    quantity_sold: Decimal
    unit: str
    unit_price: Decimal
    discount_percentage: Decimal
    final_amount: Decimal
    payment_method: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
