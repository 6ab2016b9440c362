# FILE: backend/tastelocal/api/router.py
# TASTELOCAL - V1 ROUTER ASSEMBLY

from fastapi import APIRouter

from ..core.config import settings
from .endpoints.businesses import router as businesses_router
from .endpoints.dashboard import router as dashboard_router
from .endpoints.stream import router as stream_router
from .endpoints.users import router as users_router

api_v1_router = APIRouter(prefix=settings.API_V1_STR)

api_v1_router.include_router(businesses_router, prefix="/businesses", tags=["Discovery"])
api_v1_router.include_router(dashboard_router, prefix="/dashboard", tags=["Dashboard"])
api_v1_router.include_router(stream_router, prefix="/stream", tags=["Streaming"])
api_v1_router.include_router(users_router, prefix="/users", tags=["Users"])
