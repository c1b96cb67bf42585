"""API routes, mounted under settings.API_PREFIX."""

from fastapi import APIRouter

from squadline.api import auth, health, leagues, notifications, teams
from squadline.core.serialization import SafeRoute

router = APIRouter(route_class=SafeRoute)
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(leagues.router, prefix="/leagues", tags=["leagues"])
router.include_router(teams.router, prefix="/teams", tags=["teams"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
