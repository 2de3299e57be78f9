"""
审计记录

两种写法：
- record：库存引擎的受保护操作使用。写在调用方的事务里并立即 flush，
  写失败则整个操作失败回滚（一致性优先）
- log_action：外围操作使用（新增原料、维护配方等），尽力而为，失败只记日志
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


async def record(
    db: AsyncSession,
    actor_id: Optional[int],
    action: str,
    resource_type: str,
    resource_id: Optional[int],
    resource_name: Optional[str] = None,
    description: Optional[str] = None,
    old_value: Optional[Dict[str, Any]] = None,
    new_value: Optional[Dict[str, Any]] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """在已开启的事务内写入一条审计日志"""
    if not db.in_transaction():
        raise RuntimeError("audit.record must be called inside an open transaction")

    entry = AuditLog(
        user_id=actor_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        description=description,
        old_value=old_value,
        new_value=new_value,
        details=details,
    )
    db.add(entry)
    await db.flush()
    return entry


async def log_action(
    db: AsyncSession,
    actor_id: Optional[int],
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    resource_name: Optional[str] = None,
    description: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """尽力写入审计日志并单独提交，失败不影响主流程"""
    try:
        entry = AuditLog(
            user_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            resource_name=resource_name,
            description=description,
            details=details,
        )
        db.add(entry)
        await db.commit()
        return entry
    except Exception as e:
        await db.rollback()
        logger.error(f"审计日志写入失败（已忽略）: {action} {resource_type}:{resource_id} - {e}")
        return None
