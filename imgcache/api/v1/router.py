"""API v1 router aggregation."""

from fastapi import APIRouter

from imgcache.api.v1.endpoints import health, image

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(image.router, prefix="/image", tags=["image"])
