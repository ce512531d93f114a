from fastapi import APIRouter

from app.interfaces.api.health import router as health_router
from app.interfaces.api.report_downtime import router as report_downtime_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(report_downtime_router)
