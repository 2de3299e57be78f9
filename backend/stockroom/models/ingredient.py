"""
原料模型 - 记录每种原料的当前库存与阈值
- current_stock 只能经由库存引擎的三个业务操作修改（调整/生产扣料）
- 软删除，不物理删除，保证审计日志和批次追溯的关联
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Date, DateTime, DECIMAL, Boolean, CheckConstraint
)
from stockroom.db.base import Base


class Ingredient(Base):
    """原料（可追踪的库存项）"""
    __tablename__ = "ingredients"

    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="chk_ingredients_stock_non_negative"),
        CheckConstraint("optimal_stock >= minimum_stock", name="chk_ingredients_optimal_gte_minimum"),
        CheckConstraint("cost_per_unit >= 0", name="chk_ingredients_cost_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(255), unique=True, nullable=False, comment="原料名称")
    code = Column(String(100), unique=True, comment="原料编码")

    # 库存（DECIMAL 支持小数计量，如 12.5kg）
    current_stock = Column(DECIMAL(12, 3), nullable=False, default=Decimal("0"), comment="当前库存")
    minimum_stock = Column(DECIMAL(12, 3), nullable=False, default=Decimal("0"), comment="最低库存")
    optimal_stock = Column(DECIMAL(12, 3), nullable=False, default=Decimal("0"), comment="理想库存")
    unit = Column(String(20), nullable=False, comment="计量单位：kg/g/liter/ml/unit/pack")

    # 成本单价（生产扣料时按当时单价快照进批次成本）
    cost_per_unit = Column(DECIMAL(12, 3), nullable=False, default=Decimal("0"), comment="成本单价")

    expiry_date = Column(Date, comment="过期日期")
    supplier_name = Column(String(255), comment="供应商")

    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, index=True, comment="软删除时间")

    # 审计字段
    created_by = Column(Integer, comment="创建人")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Ingredient {self.id}:{self.name} = {self.current_stock}{self.unit}>"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_low_stock(self) -> bool:
        """是否低于最低库存"""
        return (self.current_stock or Decimal("0")) < (self.minimum_stock or Decimal("0"))
