"""
Pydantic schemas for the portfolio API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from showcase.models import (
    BlobImage,
    Category,
    EntryDraft,
    Image,
    InlineImage,
    LegacyImage,
    PortfolioEntry,
)

Tag = Annotated[str, Field(max_length=50)]

_URL_ADAPTER = TypeAdapter(AnyUrl)

REQUIRED_MESSAGES = {
    "title": "Title is required.",
    "description": "Description is required.",
    "category": "Category is required.",
    "featured": "Featured must be true or false.",
}

FIELD_MESSAGES = {
    ("title", "missing"): REQUIRED_MESSAGES["title"],
    ("title", "string_too_short"): REQUIRED_MESSAGES["title"],
    ("title", "string_too_long"): "Title cannot exceed 200 characters.",
    ("description", "missing"): REQUIRED_MESSAGES["description"],
    ("description", "string_too_short"): REQUIRED_MESSAGES["description"],
    ("description", "string_too_long"): "Description cannot exceed 2000 characters.",
    ("category", "missing"): REQUIRED_MESSAGES["category"],
    ("category", "enum"): "Invalid category.",
    ("tags", "string_too_long"): "Tags cannot exceed 50 characters.",
    ("featured", "bool_parsing"): REQUIRED_MESSAGES["featured"],
}


def format_validation_errors(exc: ValidationError) -> list[str]:
    """Flatten a pydantic error into one readable message per problem."""
    messages: list[str] = []
    for err in exc.errors():
        loc = err.get("loc") or ("",)
        field = str(loc[0])
        if err["type"] == "value_error":
            message = str(err.get("ctx", {}).get("error") or err["msg"])
        else:
            message = FIELD_MESSAGES.get((field, err["type"])) or (
                f"{field}: {err['msg']}" if field else err["msg"]
            )
        if message not in messages:
            messages.append(message)
    return messages


def _coerce_tags(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        return [
            t.strip() if isinstance(t, str) else t
            for t in value
            if not (isinstance(t, str) and not t.strip())
        ]
    return value


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    try:
        _URL_ADAPTER.validate_python(value.strip())
    except ValidationError:
        raise ValueError("Invalid URL format.") from None
    return value.strip()


class PortfolioCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: Category
    tags: list[Tag] = Field(default_factory=list)
    url: Optional[str] = None
    featured: bool = False
    imageBase64: Optional[str] = None

    normalize_tags = field_validator("tags", mode="before")(_coerce_tags)
    check_url = field_validator("url")(_check_url)

    def to_draft(self, image: Image) -> EntryDraft:
        return EntryDraft(
            title=self.title,
            description=self.description,
            category=self.category.value,
            tags=list(self.tags),
            url=self.url,
            featured=self.featured,
            image=image,
        )


class PortfolioUpdate(BaseModel):
    """Partial patch: only fields present in the request are applied."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[Category] = None
    tags: Optional[list[Tag]] = None
    url: Optional[str] = None
    featured: Optional[bool] = None
    imageBase64: Optional[str] = None

    normalize_tags = field_validator("tags", mode="before")(_coerce_tags)
    check_url = field_validator("url")(_check_url)

    @field_validator("title", "description", "category", "featured", mode="before")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(REQUIRED_MESSAGES[info.field_name])
        return value

    def changes(self) -> dict:
        changes = {}
        for name in self.model_fields_set - {"imageBase64"}:
            value = getattr(self, name)
            if name == "category":
                value = value.value
            changes[name] = value
        return changes


class LikeRequest(BaseModel):
    increment: bool = True


class ContactRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    company: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    project_type: Optional[str] = None
    message: Optional[str] = None


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class PortfolioOut(BaseModel):
    id: str
    title: str
    description: str
    image: str = ""
    imageId: Optional[str] = None
    imageBase64: str = ""
    imageUrl: str = ""
    url: Optional[str] = None
    category: str
    tags: list[str]
    featured: bool
    views: int
    likes: int
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_entry(cls, entry: PortfolioEntry, image_url: str) -> "PortfolioOut":
        image = entry.image
        return cls(
            id=entry.id,
            title=entry.title,
            description=entry.description,
            image=image.reference if isinstance(image, LegacyImage) else "",
            imageId=image.ref if isinstance(image, BlobImage) else None,
            imageBase64=image.data_uri if isinstance(image, InlineImage) else "",
            imageUrl=image_url,
            url=entry.url,
            category=entry.category,
            tags=list(entry.tags),
            featured=entry.featured,
            views=entry.views,
            likes=entry.likes,
            createdAt=_timestamp(entry.created_at),
            updatedAt=_timestamp(entry.updated_at),
        )


class PaginationOut(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int
    hasNext: bool
    hasPrev: bool


class PortfolioListResponse(BaseModel):
    success: Literal[True] = True
    data: list[PortfolioOut]
    pagination: PaginationOut


class PortfolioResponse(BaseModel):
    success: Literal[True] = True
    data: PortfolioOut


class PortfolioSavedResponse(PortfolioResponse):
    message: str


class DeletedId(BaseModel):
    id: str


class DeleteResponse(BaseModel):
    success: Literal[True] = True
    message: str
    data: DeletedId


class LikeCount(BaseModel):
    likes: int


class LikeResponse(BaseModel):
    success: Literal[True] = True
    data: LikeCount
    message: str


class CategoryStat(BaseModel):
    category: str
    count: int


class TagStat(BaseModel):
    tag: str
    count: int


class TopViewed(BaseModel):
    id: str
    title: str
    views: int


class StatsSummary(BaseModel):
    totalPortfolios: int
    featuredPortfolios: int
    categoryStats: list[CategoryStat]
    popularTags: list[TagStat]
    topViewedPortfolios: list[TopViewed]


class StatsResponse(BaseModel):
    success: Literal[True] = True
    data: StatsSummary


class MessageResponse(BaseModel):
    success: bool
    message: str
