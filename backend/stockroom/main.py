from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stockroom.api.api_v1.api import api_router as api_v1_router
from stockroom.core.config import settings
from stockroom.core.exceptions import InventoryError
from stockroom.core.logging_config import setup_logging, get_logger
from stockroom.services.scheduler import init_scheduler, shutdown_scheduler, get_scheduler_status
from stockroom.db.init_db import ensure_tables_exist

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    setup_logging(settings.LOG_LEVEL)
    logger.info("🚀 应用启动中...")

    await ensure_tables_exist()
    logger.info("📊 数据库表已就绪")

    init_scheduler()
    yield
    logger.info("🛑 应用关闭中...")
    shutdown_scheduler()


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        description="生产原料库存系统 - 库存一致性引擎",
        lifespan=lifespan if use_lifespan else None,
    )

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health():
        return {"status": "ok", "scheduler": get_scheduler_status()}

    return app


app = create_app()
