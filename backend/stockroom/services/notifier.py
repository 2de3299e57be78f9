"""
实时通知 - 事务提交之后的尽力推送
- 进程内订阅表：事件类型 -> 处理函数列表
- 处理函数失败只记日志，绝不影响已提交的业务结果
"""

import asyncio
import inspect
import logging
from threading import Lock
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

LOW_STOCK = "inventory.stock.low"
BATCH_CREATED = "production.batch.created"
EXPIRING_SOON = "inventory.stock.expiring"


class Notifier:
    """进程内事件分发"""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: str, handler: Callable) -> None:
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, event_type: str, handler: Callable) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def clear(self) -> None:
        with self._lock:
            self._subscribers.clear()

    async def publish(self, event_type: str, payload: Dict[str, Any]) -> int:
        """分发事件，返回成功处理的数量"""
        with self._lock:
            handlers = list(self._subscribers.get(event_type, []))

        delivered = 0
        for handler in handlers:
            try:
                result = handler(event_type, payload)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"通知推送失败（已忽略）: {event_type} -> {getattr(handler, '__name__', handler)}: {e}")
        return delivered


# 全局通知器实例
notifier = Notifier()
