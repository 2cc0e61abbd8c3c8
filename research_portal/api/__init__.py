"""API routes mounted under API_PREFIX."""

from fastapi import APIRouter

from research_portal.api import auth, health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
