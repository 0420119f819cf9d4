"""
Image handling for portfolio entries.

An entry's image is either a blob in the blob store, an inline ``data:`` URI,
a legacy filename/URL, or nothing. ``ImageAdapter`` decides which variant a
create or update produces, keeps the blob store in step with that decision and
resolves the variant to something a client can display.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Optional

from showcase.errors import NotFound, ValidationFailed
from showcase.models import (
    NO_IMAGE,
    BlobImage,
    Image,
    InlineImage,
    LegacyImage,
)
from showcase.storage import BlobStore, StoredBlob

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:([A-Za-z0-9.+/-]+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    filename: str
    content_type: str


def encode_data_uri(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(value: str) -> tuple[str, bytes]:
    """Split a base64 ``data:`` URI into its MIME type and decoded bytes."""
    match = DATA_URI_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Invalid base64 image format.")
    try:
        payload = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("Invalid base64 image format.") from exc
    return match.group(1), payload


class ImageAdapter:
    def __init__(
        self, blobs: BlobStore, *, image_route: str, max_bytes: int
    ):
        self.blobs = blobs
        self.image_route = image_route.rstrip("/")
        self.max_bytes = max_bytes

    # -- validation ----------------------------------------------------------

    def _check_content(self, content_type: str, size: int) -> list[str]:
        problems = []
        if not (content_type or "").startswith("image/"):
            problems.append("Only image files can be uploaded.")
        if size > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            problems.append(f"Image files cannot exceed {limit_mb:g}MB.")
        return problems

    def _inline_problems(self, data_uri: str) -> list[str]:
        try:
            content_type, payload = decode_data_uri(data_uri)
        except ValueError as exc:
            return [str(exc)]
        return self._check_content(content_type, len(payload))

    def problems(
        self, upload: Optional[ImageUpload], inline: Optional[str]
    ) -> list[str]:
        """Validation messages for the image part of a create/update request."""
        if upload is not None and inline:
            return ["Provide either an image file or imageBase64, not both."]
        if upload is not None:
            return self._check_content(upload.content_type, len(upload.data))
        if inline:
            return self._inline_problems(inline)
        return []

    def _check_request(
        self, upload: Optional[ImageUpload], inline: Optional[str]
    ) -> None:
        problems = self.problems(upload, inline)
        if problems:
            raise ValidationFailed(problems)

    # -- lifecycle -----------------------------------------------------------

    def _store(self, upload: ImageUpload) -> BlobImage:
        ref = self.blobs.put(upload.data, upload.filename, upload.content_type)
        logger.info(
            "Stored image %s (%d bytes) as blob %s",
            upload.filename,
            len(upload.data),
            ref,
        )
        return BlobImage(ref)

    def release(self, image: Image) -> bool:
        """Delete the blob behind ``image``, if any. Failures are logged only."""
        if not isinstance(image, BlobImage):
            return False
        try:
            self.blobs.delete(image.ref)
        except Exception:
            logger.warning("Failed to delete image blob %s", image.ref, exc_info=True)
            return False
        return True

    def for_create(
        self, upload: Optional[ImageUpload], inline: Optional[str]
    ) -> Image:
        self._check_request(upload, inline)
        if upload is not None:
            return self._store(upload)
        if inline:
            return InlineImage(inline.strip())
        return NO_IMAGE

    def for_update(
        self,
        current: Image,
        upload: Optional[ImageUpload],
        inline: Optional[str],
    ) -> Optional[Image]:
        """Return the replacement image, or None when the image is unchanged.

        The previous blob is released before the new image is stored.
        """
        self._check_request(upload, inline)
        if upload is not None:
            self.release(current)
            return self._store(upload)
        if inline:
            self.release(current)
            return InlineImage(inline.strip())
        return None

    # -- presentation --------------------------------------------------------

    def resolve_url(self, image: Image) -> str:
        if isinstance(image, InlineImage):
            return image.data_uri
        if isinstance(image, BlobImage):
            return f"{self.image_route}/{image.ref}"
        if isinstance(image, LegacyImage):
            return image.reference
        return ""

    def fetch(self, ref: str) -> StoredBlob:
        try:
            return self.blobs.get(ref)
        except FileNotFoundError as exc:
            raise NotFound("Image not found.") from exc
