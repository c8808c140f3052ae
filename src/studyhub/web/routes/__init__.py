"""Route handlers for the Web API."""

from studyhub.web.routes.ai import router as ai_router
from studyhub.web.routes.auth import router as auth_router
from studyhub.web.routes.health import router as health_router
from studyhub.web.routes.materials import router as materials_router
from studyhub.web.routes.notifications import router as notifications_router
from studyhub.web.routes.profile import router as profile_router
from studyhub.web.routes.summaries import router as summaries_router

__all__ = [
    "ai_router",
    "auth_router",
    "health_router",
    "materials_router",
    "notifications_router",
    "profile_router",
    "summaries_router",
]
