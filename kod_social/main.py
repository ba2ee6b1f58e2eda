"""Application entry point for the FastAPI backend."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import (
    CollaboratorError,
    ConflictError,
    DocumentValidationError,
    NotFoundError,
    PermissionDenied,
    SocialError,
    ValidationFailure,
)
from .logging_config import configure_logging
from .routers import (
    chats_router,
    friends_router,
    profiles_router,
    ratings_router,
    realtime_router,
    wall_router,
)
from .services import SocialClient, build_client

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[SocialError], int], ...] = (
    (ValidationFailure, status.HTTP_400_BAD_REQUEST),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (CollaboratorError, status.HTTP_502_BAD_GATEWAY),
    (DocumentValidationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(error: SocialError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _social_error_handler(request: Request, exc: SocialError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


def create_app(client: SocialClient | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API around ``client``, or around the configured backends."""

    settings = settings or (client.settings if client is not None else get_settings())
    configure_logging(settings.log_level)
    social_client = client or build_client(settings)

    app = FastAPI(title=settings.app_name, version=settings.api_version)
    app.state.social_client = social_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SocialError, _social_error_handler)

    app.include_router(profiles_router)
    app.include_router(friends_router)
    app.include_router(wall_router)
    app.include_router(chats_router)
    app.include_router(ratings_router)
    app.include_router(realtime_router)

    @app.get("/api", tags=["system"])
    def api_info() -> dict[str, str]:
        return {"service": settings.app_name, "version": settings.api_version}

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, object]:
        return {"status": "ok", "live_views": social_client.store.active_subscriptions}

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        """Release live subscriptions and the store connection."""

        await social_client.close()

    return app


app = create_app()


__all__ = ["app", "create_app", "status_for"]
