"""员工内购销售记录 - 从成品批次出货"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from stockroom.db.base import Base


class EmployeeSale(Base):
    """员工内购"""
    __tablename__ = "employee_sales"

    id = Column(Integer, primary_key=True, index=True)

    batch_id = Column(Integer, ForeignKey("production_batches.id"), nullable=False, index=True)

    # 经手人（仓管）与购买人（员工）
    seller_id = Column(Integer, index=True)
    buyer_id = Column(Integer, index=True)

    quantity_sold = Column(DECIMAL(12, 3), nullable=False, comment="销售数量")
    unit = Column(String(20), nullable=False)

    # 价格
    unit_price = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="单价")
    discount_percentage = Column(DECIMAL(5, 2), nullable=False, default=Decimal("0.00"), comment="折扣百分比")
    final_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="实收金额")

    # CASH / CREDIT_CARD / BANK_TRANSFER / EMPLOYEE_DEDUCTION
    payment_method = Column(String(30), nullable=False, default="CASH")
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)

    batch = relationship("ProductionBatch")

    def __repr__(self):
        return f"<EmployeeSale batch:{self.batch_id} qty:{self.quantity_sold}>"
