"""
生产批次模型
- 数量与成本在创建后不可变，成本是创建时刻按原料单价计算的快照
- remaining_quantity 是可销售的剩余成品数量，由销售出库扣减
- BatchIngredient 记录实际消耗（追溯），与配方定义独立保存
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, CheckConstraint
)
from sqlalchemy.orm import relationship
from stockroom.db.base import Base


class ProductionBatch(Base):
    """生产批次"""
    __tablename__ = "production_batches"

    __table_args__ = (
        CheckConstraint("quantity_produced > 0", name="chk_batches_quantity_positive"),
        CheckConstraint("remaining_quantity >= 0", name="chk_batches_remaining_non_negative"),
        CheckConstraint("actual_cost IS NULL OR actual_cost >= 0", name="chk_batch_cost_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # 批次号（格式：PB + 日期 + 随机串，如 PB20260604-3F9A1C2E）
    batch_no = Column(String(50), unique=True, nullable=False, index=True, comment="批次号")

    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)

    quantity_produced = Column(DECIMAL(12, 3), nullable=False, comment="产出数量")
    remaining_quantity = Column(DECIMAL(12, 3), nullable=False, comment="剩余可售数量")
    unit = Column(String(20), nullable=False, default="unit")

    # 成本快照 = Σ 实际用量 × 当时原料单价
    actual_cost = Column(DECIMAL(12, 3), comment="批次成本")

    # PLANNED / IN_PROGRESS / COMPLETED / FAILED / CANCELLED
    status = Column(String(20), nullable=False, default="COMPLETED", index=True, comment="状态")

    produced_by = Column(Integer, index=True, comment="生产人")
    notes = Column(Text, comment="备注")

    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    deleted_at = Column(DateTime, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    recipe = relationship("Recipe")
    consumed = relationship(
        "BatchIngredient",
        back_populates="batch",
        order_by="BatchIngredient.id",
    )

    def __repr__(self):
        return f"<ProductionBatch {self.batch_no}: {self.remaining_quantity}/{self.quantity_produced}>"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_depleted(self) -> bool:
        return (self.remaining_quantity or Decimal("0")) <= Decimal("0")

    @property
    def status_display(self) -> str:
        status_map = {
            "PLANNED": "计划中",
            "IN_PROGRESS": "生产中",
            "COMPLETED": "已完成",
            "FAILED": "失败",
            "CANCELLED": "已取消",
        }
        return status_map.get(self.status, self.status)


class BatchIngredient(Base):
    """批次追溯行 - 某批次实际消耗了多少某原料（只增不改）"""
    __tablename__ = "batch_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("production_batches.id"), nullable=False, index=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False, index=True)

    quantity_used = Column(DECIMAL(12, 3), nullable=False, comment="实际用量")
    unit = Column(String(20), nullable=False)

    # 消耗时的单价快照
    cost_at_time = Column(DECIMAL(12, 3), comment="当时单价")

    created_at = Column(DateTime, default=datetime.utcnow)

    batch = relationship("ProductionBatch", back_populates="consumed")
    ingredient = relationship("Ingredient")

    def __repr__(self):
        return f"<BatchIngredient batch:{self.batch_id} ingredient:{self.ingredient_id} qty:{self.quantity_used}>"

    @property
    def cost_amount(self) -> Decimal:
        return (self.cost_at_time or Decimal("0")) * self.quantity_used
