"""
FastAPI application entry point for the portal backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from portal_backend import admin_routes, routes
from portal_backend.auth import ensure_admin
from portal_backend.config import get_settings
from portal_backend.dependencies import get_db_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.bootstrap_admin_email and settings.bootstrap_admin_password:
        ensure_admin(
            get_db_client(),
            settings.bootstrap_admin_email,
            settings.bootstrap_admin_password,
        )
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(
        title="Women's Wing Portal Backend", version="0.1.0", lifespan=lifespan
    )
    app.include_router(routes.router, prefix=settings.api_prefix)
    app.include_router(admin_routes.router, prefix=settings.api_prefix)
    return app


app = create_app()
