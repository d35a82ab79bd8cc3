from fastapi import APIRouter

from podsearch.api.endpoints.admin import router as admin_router
from podsearch.api.endpoints.auth import router as auth_router
from podsearch.api.endpoints.public import router as public_router

routers = APIRouter()
routers.include_router(auth_router, prefix="/auth", tags=["Auth"])
routers.include_router(admin_router, prefix="/admin", tags=["Admin"])
routers.include_router(public_router, prefix="/public", tags=["Public"])
