"""FastAPI application for the Reviews Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.reviews_service.routers import (
    admin_router,
    coach_router,
    ensemble_reviews_router,
    invites_router,
    public_router,
    reviews_router,
)


def create_app() -> FastAPI:
    """Create and configure the Reviews Service FastAPI app."""
    app = FastAPI(
        title="Reviews Service",
        version="0.1.0",
        description="Coach reviews, invites, approvals and ratings.",
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "reviews"}

    # Reviewer and coach routes
    # Gateway: /api/v1/reviews/{path} → /reviews/{path}
    app.include_router(invites_router)
    app.include_router(ensemble_reviews_router)
    app.include_router(coach_router)
    app.include_router(reviews_router)

    # Public testimonials
    # Gateway: /api/v1/coaches/{path} → /coaches/{path}
    app.include_router(public_router)

    # Admin routes
    # Gateway: /api/v1/admin/reviews/{path} → /admin/reviews/{path}
    app.include_router(admin_router)

    return app


app = create_app()
