"""
Dependency wiring for the FastAPI app.

``create_app`` builds one ``Backends`` bundle and keeps it on ``app.state``;
the getters below hand its members to request handlers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from showcase.config import Settings
from showcase.db import InMemoryPortfolioDb, PortfolioDb, SqlPortfolioDb
from showcase.errors import ConfigurationError
from showcase.images import ImageAdapter
from showcase.mailer import ContactMailer
from showcase.storage import BlobStore, InMemoryBlobStore, S3BlobStore

logger = logging.getLogger(__name__)


@dataclass
class Backends:
    settings: Settings
    db: PortfolioDb
    blobs: BlobStore
    images: ImageAdapter
    mailer: ContactMailer

    def close(self) -> None:
        dispose = getattr(self.db, "dispose", None)
        if dispose:
            dispose()


def build_db(settings: Settings) -> PortfolioDb:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory entry store")
        return InMemoryPortfolioDb()
    try:
        return SqlPortfolioDb(settings.database_url)
    except Exception as exc:
        raise ConfigurationError(f"Cannot open the entry store: {exc}") from exc


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.use_in_memory_backends or not settings.s3_bucket:
        logger.info("Using in-memory blob store")
        return InMemoryBlobStore(bucket=settings.image_bucket)
    return S3BlobStore(
        bucket=settings.s3_bucket,
        prefix=settings.image_bucket,
        region=settings.s3_region or "",
        endpoint=settings.s3_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
    )


def build_backends(
    settings: Settings,
    *,
    db: Optional[PortfolioDb] = None,
    blobs: Optional[BlobStore] = None,
    mailer: Optional[ContactMailer] = None,
) -> Backends:
    db = db if db is not None else build_db(settings)
    blobs = blobs if blobs is not None else build_blob_store(settings)
    images = ImageAdapter(
        blobs,
        image_route=f"{settings.api_prefix.rstrip('/')}/portfolio/image",
        max_bytes=settings.max_image_bytes,
    )
    return Backends(
        settings=settings,
        db=db,
        blobs=blobs,
        images=images,
        mailer=mailer or ContactMailer.from_settings(settings),
    )


def get_backends(request: Request) -> Backends:
    return request.app.state.backends


def get_settings_dep(request: Request) -> Settings:
    return get_backends(request).settings


def get_db(request: Request) -> PortfolioDb:
    return get_backends(request).db


def get_image_adapter(request: Request) -> ImageAdapter:
    return get_backends(request).images


def get_mailer(request: Request) -> ContactMailer:
    return get_backends(request).mailer
