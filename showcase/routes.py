"""
HTTP routes for the portfolio API.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from showcase.config import Settings
from showcase.db import PortfolioDb
from showcase.dependencies import (
    get_db,
    get_image_adapter,
    get_mailer,
    get_settings_dep,
)
from showcase.errors import InvalidIdentifier, NotFound, ShowcaseError, ValidationFailed
from showcase.images import ImageAdapter, ImageUpload
from showcase.mailer import ContactMailer
from showcase.models import PortfolioEntry
from showcase.query import Pagination, parse_query
from showcase.schemas import (
    CategoryStat,
    ContactRequest,
    DeletedId,
    DeleteResponse,
    LikeCount,
    LikeRequest,
    LikeResponse,
    MessageResponse,
    PaginationOut,
    PortfolioCreate,
    PortfolioListResponse,
    PortfolioOut,
    PortfolioResponse,
    PortfolioSavedResponse,
    PortfolioUpdate,
    StatsResponse,
    StatsSummary,
    TagStat,
    TopViewed,
    format_validation_errors,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")

_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _require_id(value: str, message: Optional[str] = None) -> str:
    if not ID_PATTERN.match(value or ""):
        raise InvalidIdentifier(message)
    return value


def _out(entry: PortfolioEntry, images: ImageAdapter) -> PortfolioOut:
    return PortfolioOut.from_entry(entry, images.resolve_url(entry.image))


async def _read_submission(
    request: Request, max_bytes: int
) -> tuple[dict, Optional[ImageUpload]]:
    """Collect entry fields and an optional image file from a JSON or form body."""
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith(_FORM_TYPES):
        try:
            raw = await request.json()
        except ValueError:
            raise ValidationFailed(["Request body must be valid JSON."]) from None
        if not isinstance(raw, dict):
            raise ValidationFailed(["Request body must be a JSON object."])
        raw.pop("image", None)
        return raw, None

    form = await request.form()
    raw: dict = {}
    upload = None
    for key in set(form.keys()):
        values = form.getlist(key)
        if key == "image":
            file = values[0]
            if isinstance(file, UploadFile) and file.filename:
                # Read one byte past the cap so oversize files are detectable.
                data = await file.read(max_bytes + 1)
                upload = ImageUpload(
                    data=data,
                    filename=file.filename,
                    content_type=file.content_type or "",
                )
            continue
        raw[key] = values if len(values) > 1 else values[0]
    return raw, upload


def _inline_value(raw: dict) -> Optional[str]:
    value = raw.get("imageBase64")
    return value if isinstance(value, str) and value.strip() else None


@router.get("")
def api_info(settings: Settings = Depends(get_settings_dep)):
    prefix = settings.api_prefix.rstrip("/")
    return {
        "success": True,
        "message": "Portfolio showcase API",
        "version": "1.0.0",
        "endpoints": {
            f"GET {prefix}/portfolio": "List portfolio entries",
            f"GET {prefix}/portfolio/:id": "Get a portfolio entry",
            f"POST {prefix}/portfolio": "Create a portfolio entry",
            f"PUT {prefix}/portfolio/:id": "Update a portfolio entry",
            f"DELETE {prefix}/portfolio/:id": "Delete a portfolio entry",
            f"POST {prefix}/portfolio/:id/like": "Like or unlike an entry",
            f"GET {prefix}/portfolio/stats/summary": "Portfolio statistics",
            f"GET {prefix}/portfolio/image/:fileId": "Serve an uploaded image",
            f"POST {prefix}/send-email": "Send a contact inquiry",
        },
    }


@router.get("/portfolio/image/{file_id}")
def get_image(
    file_id: str,
    images: ImageAdapter = Depends(get_image_adapter),
    settings: Settings = Depends(get_settings_dep),
):
    _require_id(file_id, "Invalid file ID.")
    blob = images.fetch(file_id)
    return Response(
        content=blob.data,
        media_type=blob.content_type,
        headers={"Cache-Control": f"public, max-age={settings.image_cache_seconds}"},
    )


@router.get("/portfolio/stats/summary", response_model=StatsResponse)
async def stats_summary(db: PortfolioDb = Depends(get_db)):
    total, featured, categories, tags, top_viewed = await asyncio.gather(
        run_in_threadpool(db.count_entries),
        run_in_threadpool(db.count_entries, True),
        run_in_threadpool(db.category_counts),
        run_in_threadpool(db.tag_counts, 10),
        run_in_threadpool(db.top_viewed, 5),
    )
    summary = StatsSummary(
        totalPortfolios=total,
        featuredPortfolios=featured,
        categoryStats=[CategoryStat(category=c, count=n) for c, n in categories],
        popularTags=[TagStat(tag=t, count=n) for t, n in tags],
        topViewedPortfolios=[
            TopViewed(id=i, title=title, views=views) for i, title, views in top_viewed
        ],
    )
    return StatsResponse(data=summary)


@router.get("/portfolio", response_model=PortfolioListResponse)
def list_portfolios(
    category: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="Comma separated tags"),
    search: Optional[str] = Query(None),
    sort: Optional[str] = Query(None, description="최신순, 인기순, 이름순 or 조회순"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    featured: Optional[str] = Query(None),
    db: PortfolioDb = Depends(get_db),
    images: ImageAdapter = Depends(get_image_adapter),
):
    query = parse_query(
        {
            "category": category,
            "tags": tags,
            "search": search,
            "sort": sort,
            "page": page,
            "limit": limit,
            "featured": featured,
        }
    )
    entries = db.find_entries(query)
    total = db.count_matching(query)
    pagination = Pagination.compute(query, total)
    return PortfolioListResponse(
        data=[_out(e, images) for e in entries],
        pagination=PaginationOut(**pagination.as_dict()),
    )


@router.get("/portfolio/{entry_id}", response_model=PortfolioResponse)
def get_portfolio(
    entry_id: str,
    db: PortfolioDb = Depends(get_db),
    images: ImageAdapter = Depends(get_image_adapter),
):
    _require_id(entry_id)
    entry = db.increment_views(entry_id)
    if not entry:
        raise NotFound()
    return PortfolioResponse(data=_out(entry, images))


@router.post("/portfolio", response_model=PortfolioSavedResponse, status_code=201)
async def create_portfolio(
    request: Request,
    db: PortfolioDb = Depends(get_db),
    images: ImageAdapter = Depends(get_image_adapter),
):
    raw, upload = await _read_submission(request, images.max_bytes)
    payload = None
    problems: list[str] = []
    try:
        payload = PortfolioCreate.model_validate(raw)
    except ValidationError as exc:
        problems.extend(format_validation_errors(exc))
    problems.extend(images.problems(upload, _inline_value(raw)))
    if problems:
        raise ValidationFailed(problems)

    image = await run_in_threadpool(images.for_create, upload, payload.imageBase64)
    try:
        entry = await run_in_threadpool(db.create_entry, payload.to_draft(image))
    except Exception:
        await run_in_threadpool(images.release, image)
        raise
    logger.info("Created portfolio entry %s", entry.id)
    return PortfolioSavedResponse(
        data=_out(entry, images), message="Portfolio created successfully."
    )


@router.put("/portfolio/{entry_id}", response_model=PortfolioSavedResponse)
async def update_portfolio(
    entry_id: str,
    request: Request,
    db: PortfolioDb = Depends(get_db),
    images: ImageAdapter = Depends(get_image_adapter),
):
    _require_id(entry_id)
    current = await run_in_threadpool(db.get_entry, entry_id)
    if not current:
        raise NotFound()

    raw, upload = await _read_submission(request, images.max_bytes)
    payload = None
    problems: list[str] = []
    try:
        payload = PortfolioUpdate.model_validate(raw)
    except ValidationError as exc:
        problems.extend(format_validation_errors(exc))
    problems.extend(images.problems(upload, _inline_value(raw)))
    if problems:
        raise ValidationFailed(problems)

    changes = payload.changes()
    new_image = await run_in_threadpool(
        images.for_update, current.image, upload, payload.imageBase64
    )
    if new_image is not None:
        changes["image"] = new_image
    try:
        updated = await run_in_threadpool(db.update_entry, entry_id, changes)
    except Exception:
        if new_image is not None:
            await run_in_threadpool(images.release, new_image)
        raise
    if not updated:
        if new_image is not None:
            await run_in_threadpool(images.release, new_image)
        raise NotFound()
    return PortfolioSavedResponse(
        data=_out(updated, images), message="Portfolio updated successfully."
    )


@router.delete("/portfolio/{entry_id}", response_model=DeleteResponse)
def delete_portfolio(
    entry_id: str,
    db: PortfolioDb = Depends(get_db),
    images: ImageAdapter = Depends(get_image_adapter),
):
    _require_id(entry_id)
    entry = db.get_entry(entry_id)
    if not entry:
        raise NotFound()
    images.release(entry.image)
    db.delete_entry(entry_id)
    logger.info("Deleted portfolio entry %s", entry_id)
    return DeleteResponse(
        message="Portfolio deleted successfully.", data=DeletedId(id=entry_id)
    )


@router.post("/portfolio/{entry_id}/like", response_model=LikeResponse)
def like_portfolio(
    entry_id: str,
    payload: Optional[LikeRequest] = None,
    db: PortfolioDb = Depends(get_db),
):
    _require_id(entry_id)
    increment = payload.increment if payload else True
    likes = db.adjust_likes(entry_id, 1 if increment else -1)
    if likes is None:
        raise NotFound()
    return LikeResponse(
        data=LikeCount(likes=likes),
        message="Like added." if increment else "Like removed.",
    )


@router.post("/send-email", response_model=MessageResponse)
def send_email(
    payload: ContactRequest, mailer: ContactMailer = Depends(get_mailer)
):
    try:
        mailer.send(payload)
    except ShowcaseError as exc:
        return JSONResponse(
            {"success": False, "message": exc.error}, status_code=exc.status_code
        )
    return MessageResponse(success=True, message="Your inquiry was sent successfully!")
