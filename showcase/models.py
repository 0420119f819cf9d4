"""
Domain records for portfolio entries.

An entry carries at most one active image, modelled as the ``Image`` sum type.
Stores persist it as three nullable columns; ``image_to_columns`` and
``image_from_columns`` are the only places that know about that layout.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Optional, Union


class Category(str, enum.Enum):
    AI_ML = "AI/ML"
    ENTERPRISE = "엔터프라이즈"
    IOT = "IoT"
    PLATFORM = "플랫폼"
    BENCHMARK = "벤치마크"
    DATA = "데이터"
    OCR = "OCR"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


@dataclass(frozen=True)
class NoImage:
    pass


@dataclass(frozen=True)
class BlobImage:
    """Image bytes held in the blob store under ``ref``."""

    ref: str


@dataclass(frozen=True)
class InlineImage:
    """Image embedded as a ``data:`` URI."""

    data_uri: str


@dataclass(frozen=True)
class LegacyImage:
    """Plain filename or URL from older records. Never written by the API."""

    reference: str


Image = Union[NoImage, BlobImage, InlineImage, LegacyImage]

NO_IMAGE = NoImage()


def image_to_columns(image: Image) -> dict:
    return {
        "image_path": image.reference if isinstance(image, LegacyImage) else "",
        "image_id": image.ref if isinstance(image, BlobImage) else None,
        "image_base64": image.data_uri if isinstance(image, InlineImage) else "",
    }


def image_from_columns(
    image_path: Optional[str], image_id: Optional[str], image_base64: Optional[str]
) -> Image:
    # Rows written before the sum type existed may have several columns set.
    if image_base64:
        return InlineImage(image_base64)
    if image_id:
        return BlobImage(image_id)
    if image_path:
        return LegacyImage(image_path)
    return NO_IMAGE


@dataclass
class EntryDraft:
    """Validated field values for a new entry."""

    title: str
    description: str
    category: str
    tags: list[str] = field(default_factory=list)
    url: Optional[str] = None
    featured: bool = False
    image: Image = NO_IMAGE


@dataclass
class PortfolioEntry:
    id: str
    title: str
    description: str
    category: str
    tags: list[str] = field(default_factory=list)
    url: Optional[str] = None
    featured: bool = False
    image: Image = NO_IMAGE
    views: int = 0
    likes: int = 0
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "url": self.url,
            "featured": self.featured,
            "views": self.views,
            "likes": self.likes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            **image_to_columns(self.image),
        }


# Fields a general update may touch. Counters only move through their
# dedicated operations.
MUTABLE_FIELDS = frozenset(
    {"title", "description", "category", "tags", "url", "featured", "image"}
)
