"""
日志配置
- 控制台：彩色级别
- 文件：logs/app_日期.log（INFO 及以上）与 logs/error_日期.log（只记错误）
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

LOG_DIR = Path("logs")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 这些库的 INFO 太吵，统一压到 WARNING
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler", "aiosqlite")

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """控制台彩色输出，只给级别名上色"""

    def format(self, record):
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        # 同一条记录还会交给文件处理器，不能改原对象
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"{color}{record.levelname}{_RESET}"
        return super().format(tinted)


def _file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Path = LOG_DIR):
    """
    配置根日志器，重复调用会替换掉之前的处理器

    Args:
        log_level: DEBUG / INFO / WARNING / ERROR / CRITICAL，无法识别时按 INFO
        log_dir: 日志文件目录，不存在则创建
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%d")

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in (
        console,
        _file_handler(log_dir / f"app_{stamp}.log", logging.INFO),
        _file_handler(log_dir / f"error_{stamp}.log", logging.ERROR),
    ):
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"📋 日志系统初始化完成 - 级别 {logging.getLevelName(level)}，目录 {log_dir}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
