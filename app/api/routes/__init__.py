from fastapi import APIRouter

from app.api.routes import admin, health, qr

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(qr.router, prefix="/qr", tags=["qr"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
