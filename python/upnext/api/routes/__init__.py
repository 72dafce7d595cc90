"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from upnext.api.routes.groups import router as groups_router
from upnext.api.routes.health import router as health_router
from upnext.api.routes.invitations import router as invitations_router
from upnext.api.routes.media import router as media_router
from upnext.api.routes.queues import router as queues_router
from upnext.api.routes.users import router as users_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(users_router, tags=["users"])
    api_router.include_router(queues_router, tags=["queues"])
    api_router.include_router(media_router, tags=["media"])
    api_router.include_router(groups_router, tags=["groups"])
    api_router.include_router(invitations_router, tags=["invitations"])
    return api_router


__all__ = ["create_api_router"]
