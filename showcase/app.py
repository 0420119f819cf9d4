"""
FastAPI application entry point for the portfolio showcase service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from showcase.config import Settings, get_settings
from showcase.db import PortfolioDb
from showcase.dependencies import build_backends
from showcase.errors import install_error_handlers
from showcase.mailer import ContactMailer
from showcase.ratelimit import install_rate_limit
from showcase.routes import router
from showcase.seed import seed_default_entries
from showcase.storage import BlobStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    backends = app.state.backends
    if backends.settings.seed_default_data:
        await run_in_threadpool(seed_default_entries, backends.db)
    yield
    backends.close()


def create_app(
    settings: Optional[Settings] = None,
    *,
    db: Optional[PortfolioDb] = None,
    blobs: Optional[BlobStore] = None,
    mailer: Optional[ContactMailer] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Portfolio Showcase API", version="1.0.0", lifespan=lifespan)
    app.state.backends = build_backends(settings, db=db, blobs=blobs, mailer=mailer)

    install_error_handlers(app, expose_internal=not settings.is_production)
    if settings.rate_limit_enabled:
        install_rate_limit(
            app,
            path_prefix=settings.api_prefix,
            window_seconds=settings.rate_limit_window_seconds,
            max_requests=settings.rate_limit_max_requests,
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    logger.info("Starting portfolio API on port %d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
