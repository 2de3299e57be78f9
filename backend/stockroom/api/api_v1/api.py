"""V1 API 路由聚合"""
from fastapi import APIRouter

from stockroom.api.api_v1.endpoints import inventory, production, sales, audit_logs

api_router = APIRouter()

api_router.include_router(inventory.router, prefix="/inventory", tags=["原料库存"])
api_router.include_router(production.router, prefix="/production", tags=["生产批次"])
api_router.include_router(sales.router, prefix="/sales", tags=["员工内购"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["操作日志"])
