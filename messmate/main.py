from __future__ import annotations

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from messmate.api.router import router as api_router
from messmate.config import settings
from messmate.core.handlers import register_exception_handlers
from messmate.core.logging import get_logger, setup_logging
from messmate.core.middleware import register_middlewares
from messmate.db.init_db import init_db
from messmate.realtime.server import registry, sio
from messmate.schemas.common import SuccessResponse

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Application factory.

    - Configures title, version and debug mode from Settings.
    - Registers CORS, core middleware and exception handlers.
    - Includes the API router under ``settings.API_PREFIX``.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # browsers reject credentials with a wildcard origin
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get(f"{settings.API_PREFIX}/health", tags=["Health"])
    def health():
        return SuccessResponse.create(
            message="MessMate API is running",
            data={
                "environment": settings.ENVIRONMENT,
                "version": settings.API_VERSION,
                "realtime_connections": len(registry),
            },
        )

    @app.on_event("startup")
    async def on_startup() -> None:
        setup_logging()
        if not settings.is_production:
            # production schemas are managed outside the app
            init_db()
        registry.open()
        logger.info("Application started", extra={"environment": settings.ENVIRONMENT})

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        registry.close()
        logger.info("Application stopped")

    return app


app = create_app()

# Socket.IO and the REST API share one ASGI entry point
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
