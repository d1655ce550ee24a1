"""
API v1 package.

Contains versioned API routes for the auth workflows and user administration.
"""

from fastapi import APIRouter

from src.api.v1.routes import router as auth_router
from src.api.v1.users import router as users_router

router = APIRouter(tags=["v1"])
router.include_router(auth_router)
router.include_router(users_router)

__all__ = ["router"]
