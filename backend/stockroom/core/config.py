from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    PROJECT_NAME: str = "生产原料库存系统"
    API_V1_STR: str = "/api/v1"

    # CORS配置
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # 数据库配置（异步驱动；sqlite:/// 会自动改为 sqlite+aiosqlite:///）
    DATABASE_URI: str = "sqlite+aiosqlite:///./stockroom.db"

    # 行锁等待上限（秒），超时则操作以 LockTimeout 失败
    LOCK_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0, description="行锁等待超时")

    # 低库存/临期巡检
    LOW_STOCK_SCAN_ENABLED: bool = True
    LOW_STOCK_SCAN_INTERVAL_MINUTES: int = 30
    EXPIRY_WARNING_DAYS: int = 7

    LOG_LEVEL: str = "INFO"

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"


settings = Settings()
logger.info(f"加载配置: API_V1_STR={settings.API_V1_STR}, DATABASE_URI={settings.DATABASE_URI}")
