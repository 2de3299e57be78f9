"""
定时任务调度器服务
使用 APScheduler 定时巡检低库存与临期原料，并推送提醒
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import async_sessionmaker

from stockroom.core.config import settings
from stockroom.db import session as db_session
from stockroom.services import inventory
from stockroom.services.inventory import low_stock_payload
from stockroom.services.notifier import EXPIRING_SOON, LOW_STOCK, notifier

logger = logging.getLogger(__name__)

# 全局调度器实例
scheduler: Optional[AsyncIOScheduler] = None


async def scan_stock_alerts(session_factory: Optional[async_sessionmaker] = None) -> dict:
    """巡检一次：低库存 + 临期，返回各自数量"""
    factory = session_factory or db_session.SessionLocal
    try:
        async with factory() as db:
            low = await inventory.get_low_stock(db)
            expiring = await inventory.get_expiring_soon(db, days=settings.EXPIRY_WARNING_DAYS)

        for ingredient in low:
            await notifier.publish(LOW_STOCK, low_stock_payload(ingredient))
        for ingredient in expiring:
            await notifier.publish(EXPIRING_SOON, {
                "ingredient_id": ingredient.id,
                "name": ingredient.name,
                "expiry_date": ingredient.expiry_date.isoformat(),
            })

        if low or expiring:
            logger.info(f"🔔 库存巡检: 低库存 {len(low)} 项，临期 {len(expiring)} 项")
        return {"low_stock": len(low), "expiring": len(expiring)}
    except Exception as e:
        logger.error(f"❌ 库存巡检失败: {str(e)}")
        return {"low_stock": 0, "expiring": 0}


def init_scheduler():
    """初始化并启动调度器"""
    global scheduler

    if not settings.LOW_STOCK_SCAN_ENABLED:
        logger.info("🔕 库存巡检已禁用")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scan_stock_alerts,
        trigger=IntervalTrigger(minutes=settings.LOW_STOCK_SCAN_INTERVAL_MINUTES),
        id="stock_alert_scan",
        name="低库存/临期巡检",
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"⏰ 定时任务调度器已启动 - 库存巡检间隔: {settings.LOW_STOCK_SCAN_INTERVAL_MINUTES} 分钟")


def shutdown_scheduler():
    """关闭调度器"""
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ 定时任务调度器已关闭")


def get_scheduler_status() -> dict:
    """获取调度器状态"""
    if not scheduler:
        return {
            "enabled": False,
            "running": False,
            "jobs": []
        }

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        })

    return {
        "enabled": settings.LOW_STOCK_SCAN_ENABLED,
        "running": scheduler.running,
        "jobs": jobs
    }
