"""Reviews service routers."""

from services.reviews_service.routers.admin import router as admin_router
from services.reviews_service.routers.coach import router as coach_router
from services.reviews_service.routers.ensemble_reviews import (
    router as ensemble_reviews_router,
)
from services.reviews_service.routers.invites import router as invites_router
from services.reviews_service.routers.public import router as public_router
from services.reviews_service.routers.reviews import router as reviews_router

__all__ = [
    "admin_router",
    "coach_router",
    "ensemble_reviews_router",
    "invites_router",
    "public_router",
    "reviews_router",
]
