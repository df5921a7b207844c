"""
Storage abstraction for S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

import random
import re
import string
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError


class StorageError(Exception):
    """Raised when the object store rejects an upload."""


class StorageClient(Protocol):
    """Defines the operations the admin screens need from object storage."""

    def upload_bytes(
        self, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        ...

    def get_public_url(self, path: str) -> str:
        ...


FOLDER_PATTERN = re.compile(r"[a-z0-9][a-z0-9_-]*(?:/[a-z0-9][a-z0-9_-]*)*")


def build_upload_path(folder: str, filename: str) -> str:
    """
    Return a collision-resistant object path such as
    ``delivery-proofs/1718000000000-k3j9x0a.png``.

    ``folder`` must be lowercase slug segments separated by ``/``; anything
    else (``..``, dots, spaces) raises ``ValueError``.
    """
    folder = (folder or "").strip("/")
    if folder and not FOLDER_PATTERN.fullmatch(folder):
        raise ValueError(f"Invalid upload folder: {folder!r}")
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    if not (ext.isascii() and ext.isalnum()):
        ext = "bin"
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    name = f"{int(time.time() * 1000)}-{suffix}.{ext}"
    return f"{folder}/{name}" if folder else name


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def upload_bytes(
        self, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        if not path:
            raise StorageError("Object path is required")
        self.stored_objects[path] = data
        return path

    def get_public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    def get_bytes(self, path: str) -> bytes:
        stored = self.stored_objects.get(path)
        if stored is None:
            raise FileNotFoundError(path)
        return stored


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client for the public materials bucket.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: str = ""

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def upload_bytes(
        self, path: str, data: bytes, content_type: Optional[str] = None
    ) -> str:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Upload of {path} failed: {exc}") from exc
        return path

    def get_public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{path}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{path}"
