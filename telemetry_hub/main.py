"""
Telemetry Hub - Main Entry Point

FastAPI application that ingests log batches from nodes, delivers queued
commands back to them, and serves the accumulated logs to collectors.

Security: All database queries use SQLAlchemy with parameterized queries.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import PlainTextResponse

from telemetry_hub import __version__
from telemetry_hub.config import Settings, settings as default_settings
from telemetry_hub.database import build_engine, build_session_factory
from telemetry_hub.errors import HubError
from telemetry_hub.logging_config import configure_logging
from telemetry_hub.models import Base
from telemetry_hub.routes import command, download, health, status, update

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around its own engine and session factory."""
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.database_url, echo=settings.DEBUG)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create database tables on startup
        Base.metadata.create_all(bind=engine)
        logger.info("%s starting...", settings.APP_NAME)
        yield
        engine.dispose()
        logger.info("%s shutting down...", settings.APP_NAME)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Log ingestion and command delivery hub for reporting nodes",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # Security middleware
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HubError)
    async def hub_error_handler(request: Request, exc: HubError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return PlainTextResponse(f"Invalid request: {problems}", status_code=400)

    # Include routers
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(update.router, tags=["nodes"])
    app.include_router(download.router, tags=["collectors"])
    app.include_router(command.router, tags=["operators"])
    app.include_router(status.router, tags=["operators"])

    return app


app = create_app()


def run() -> None:
    uvicorn.run(
        "telemetry_hub.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
    )


if __name__ == "__main__":
    run()
