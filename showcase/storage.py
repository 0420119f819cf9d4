"""
Blob storage abstraction for S3-compatible object storage and in-memory testing.

Objects are addressed by an opaque reference and scoped under a bucket prefix
so portfolio images never collide with other data in the same bucket.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError


@dataclass(frozen=True)
class StoredBlob:
    data: bytes
    content_type: str
    filename: str = ""
    uploaded_at: str = ""

    @property
    def length(self) -> int:
        return len(self.data)


class BlobStore(Protocol):
    """Defines the operations the API needs from blob storage."""

    def put(self, data: bytes, filename: str, content_type: str) -> str:
        ...

    def get(self, ref: str) -> StoredBlob:
        ...

    def delete(self, ref: str) -> None:
        ...


def new_blob_ref() -> str:
    return uuid.uuid4().hex


def _uploaded_at() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class InMemoryBlobStore:
    """Test double for blob storage interactions."""

    bucket: str = "portfolio_images"
    stored_objects: dict = field(default_factory=dict)

    def put(self, data: bytes, filename: str, content_type: str) -> str:
        ref = new_blob_ref()
        self.stored_objects[ref] = StoredBlob(
            data=bytes(data),
            content_type=content_type,
            filename=filename,
            uploaded_at=_uploaded_at(),
        )
        return ref

    def get(self, ref: str) -> StoredBlob:
        stored = self.stored_objects.get(ref)
        if stored is None:
            raise FileNotFoundError(ref)
        return stored

    def delete(self, ref: str) -> None:
        if self.stored_objects.pop(ref, None) is None:
            raise FileNotFoundError(ref)


@dataclass
class S3BlobStore:
    """
    Blob store on any S3-compatible service, keyed as ``<prefix>/<ref>``.
    """

    bucket: str
    prefix: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def _key(self, ref: str) -> str:
        return f"{self.prefix.strip('/')}/{ref}"

    def put(self, data: bytes, filename: str, content_type: str) -> str:
        ref = new_blob_ref()
        self._client.put_object(
            Bucket=self.bucket,
            Key=self._key(ref),
            Body=data,
            ContentType=content_type,
            Metadata={
                # S3 metadata values must be ASCII.
                "original-name": filename.encode("ascii", "ignore").decode(),
                "uploaded-at": _uploaded_at(),
            },
        )
        return ref

    def get(self, ref: str) -> StoredBlob:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self._key(ref))
            body = response["Body"].read()
        except (ClientError, BotoCoreError) as exc:
            raise FileNotFoundError(ref) from exc
        metadata = response.get("Metadata") or {}
        return StoredBlob(
            data=body,
            content_type=response.get("ContentType") or "application/octet-stream",
            filename=metadata.get("original-name", ""),
            uploaded_at=metadata.get("uploaded-at", ""),
        )

    def delete(self, ref: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=self._key(ref))
