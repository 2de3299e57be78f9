"""
配方与物料清单（BOM）
配方维护不属于库存引擎，引擎只读取物料清单行
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, Boolean,
    UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship
from stockroom.db.base import Base


class Recipe(Base):
    """配方"""
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, comment="配方名称")
    description = Column(Text, comment="说明")

    # 产出单位（批次数量的单位）
    yield_unit = Column(String(20), nullable=False, default="unit", comment="产出单位")

    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, index=True)

    created_by = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    lines = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        order_by="RecipeIngredient.id",
    )

    def __repr__(self):
        return f"<Recipe {self.id}:{self.name}>"


class RecipeIngredient(Base):
    """物料清单行 - 生产一个单位产出所需的某种原料数量"""
    __tablename__ = "recipe_ingredients"

    __table_args__ = (
        UniqueConstraint("recipe_id", "ingredient_id", name="uq_recipe_ingredient"),
        CheckConstraint("quantity_required > 0", name="chk_recipe_ingredients_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False, index=True)

    # 每单位产出所需数量
    quantity_required = Column(DECIMAL(12, 3), nullable=False, comment="单位用量")

    recipe = relationship("Recipe", back_populates="lines")
    ingredient = relationship("Ingredient")

    def __repr__(self):
        return f"<RecipeIngredient recipe:{self.recipe_id} ingredient:{self.ingredient_id} x{self.quantity_required}>"
