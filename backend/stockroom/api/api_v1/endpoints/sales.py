"""员工内购API"""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.core.deps import get_actor_id, get_db
from stockroom.schemas.sale import EmployeeSaleCreate, EmployeeSaleResponse
from stockroom.services import sales

router = APIRouter()


@router.post("/employee", response_model=EmployeeSaleResponse, status_code=201)
async def create_employee_sale(
    *,
    db: AsyncSession = Depends(get_db),
    actor_id: Optional[int] = Depends(get_actor_id),
    sale_in: EmployeeSaleCreate) -> Any:
    """员工内购（从成品批次出货）"""
    return await sales.fulfill_sale(
        db,
        sale_in.batch_id,
        sale_in.quantity_sold,
        seller_id=actor_id,
        buyer_id=sale_in.buyer_id,
        unit_price=sale_in.unit_price,
        discount_percentage=sale_in.discount_percentage,
        payment_method=sale_in.payment_method,
        notes=sale_in.notes,
    )
