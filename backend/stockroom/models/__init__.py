# models包初始化文件

from stockroom.models.ingredient import Ingredient
from stockroom.models.recipe import Recipe, RecipeIngredient
from stockroom.models.production_batch import ProductionBatch, BatchIngredient
from stockroom.models.employee_sale import EmployeeSale
from stockroom.models.audit_log import AuditLog

__all__ = [
    "Ingredient",
    "Recipe",
    "RecipeIngredient",
    "ProductionBatch",
    "BatchIngredient",
    "EmployeeSale",
    "AuditLog",
]
