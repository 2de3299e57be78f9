"""
库存引擎异常
- 每种失败对应一个类型，调用方按类型处理
- 携带资源类型/ID，足以拼出可操作的提示，无需再查内部状态
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class InventoryError(Exception):
    """库存引擎失败基类"""

    kind = "INVENTORY_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[int] = None,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "message": self.message,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "detail": self.detail,
        }


class NotFound(InventoryError):
    """原料/配方/批次不存在或已软删除"""

    kind = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[int]):
        super().__init__(
            f"{resource_type} {resource_id} not found",
            resource_type=resource_type,
            resource_id=resource_id,
        )


class InvalidAdjustment(InventoryError):
    """调整后库存将为负数"""

    kind = "INVALID_ADJUSTMENT"
    status_code = 400


class InsufficientStock(InventoryError):
    """配方用量或销售数量超过可用数量（只报第一个不足的资源）"""

    kind = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(
        self,
        resource_type: str,
        resource_id: int,
        name: str,
        needed: Decimal,
        available: Decimal,
        unit: str = "",
    ):
        self.name = name
        self.needed = needed
        self.available = available
        self.unit = unit
        super().__init__(
            f"Insufficient {name}: need {_fmt(needed)}{unit}, have {_fmt(available)}{unit}",
            resource_type=resource_type,
            resource_id=resource_id,
            detail={
                "name": name,
                "needed": str(needed),
                "available": str(available),
                "unit": unit,
            },
        )


class InvalidRecipe(InventoryError):
    """配方没有可用的物料清单行"""

    kind = "INVALID_RECIPE"
    status_code = 422


class LockTimeout(InventoryError):
    """行锁等待超时，调用方可重试"""

    kind = "LOCK_TIMEOUT"
    status_code = 503


class StorageFailure(InventoryError):
    """底层存储无法完成提交"""

    kind = "STORAGE_FAILURE"
    status_code = 500


def _fmt(value: Decimal) -> str:
    # 350.000 -> 350, 12.500 -> 12.5
    return format(Decimal(value).normalize(), "f")
