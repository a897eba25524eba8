"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, places, routes
from .config import settings

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    # uvicorn owns the handlers; only the package level follows settings
    logging.getLogger("jogroute").setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.app_name,
        description="Builds walking and running routes of a requested length.",
    )
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "health": f"{settings.api_prefix}/health",
            "synthesize": f"{settings.api_prefix}/routes/synthesize",
            "directions_provider": settings.directions_provider,
            "docs": "/docs",
        }

    for module in (health, routes, places):
        app.include_router(module.router, prefix=settings.api_prefix)

    logger.info(
        f"App created | Provider: {settings.directions_provider} | "
        f"Trials: {settings.loop_trials} loop / {settings.extension_trials} detour | "
        f"Workers: {settings.max_parallel_trials}"
    )
    return app


app = create_app()
