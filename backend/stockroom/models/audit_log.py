"""
操作日志模型 - 只增不改的审计记录
库存引擎的三个受保护操作在同一事务内写入，提交则有、回滚则无
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON
from stockroom.db.base import Base


class AuditLog(Base):
    """操作日志 - 审计追踪"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # 操作人（系统操作时为空）
    user_id = Column(Integer, index=True, comment="操作人")

    # STOCK_ADJUSTMENT / CREATE_BATCH / EMPLOYEE_SALE / CREATE_INGREDIENT / ...
    action = Column(String(50), nullable=False, index=True, comment="操作类型")

    # ingredient / production_batch / employee_sale / recipe
    resource_type = Column(String(50), nullable=False, index=True, comment="资源类型")
    resource_id = Column(Integer, index=True, comment="资源ID")
    resource_name = Column(String(255), comment="资源名称")

    description = Column(String(500), comment="操作描述")

    old_value = Column(JSON, comment="修改前")
    new_value = Column(JSON, comment="修改后")

    # 其它上下文（原因、关联ID等）
    details = Column(JSON, comment="详情")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"

    @property
    def action_display(self) -> str:
        """操作类型显示名称"""
        action_map = {
            "STOCK_ADJUSTMENT": "库存调整",
            "CREATE_BATCH": "生产批次",
            "EMPLOYEE_SALE": "员工内购",
            "CREATE_INGREDIENT": "新增原料",
            "DELETE_INGREDIENT": "删除原料",
            "DEFINE_RECIPE": "配方维护",
        }
        return action_map.get(self.action, self.action)

    @property
    def resource_type_display(self) -> str:
        """资源类型显示名称"""
        type_map = {
            "ingredient": "原料",
            "production_batch": "生产批次",
            "employee_sale": "员工内购",
            "recipe": "配方",
        }
        return type_map.get(self.resource_type, self.resource_type)
