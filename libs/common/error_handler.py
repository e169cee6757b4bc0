"""Global exception handlers for consistent error responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from libs.common.logging import get_logger

logger = get_logger(__name__)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure and hide internals from the caller."""
    logger.exception(
        "Unhandled error on %s %s: %s", request.method, request.url.path, exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def add_exception_handlers(app: FastAPI) -> None:
    """
    Register global handlers. ``HTTPException`` subclasses raised by the
    service layer keep FastAPI's default rendering.
    """
    app.add_exception_handler(Exception, unhandled_exception_handler)
