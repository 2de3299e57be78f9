import asyncio
import logging

from stockroom.db.init_db import ensure_tables_exist

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_db() -> None:
    """
    初始化数据库（只建表，不写入演示数据）
    """
    try:
        logger.info("创建数据库表...")
        await ensure_tables_exist()
        logger.info("数据库初始化完成")
    except Exception as e:
        logger.error(f"数据库初始化失败: {e}")
        raise


if __name__ == "__main__":
    asyncio.run(init_db())
