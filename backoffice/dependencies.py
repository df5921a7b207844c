"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from backoffice.config import get_settings
from backoffice.db import InMemoryNoticeStore, NoticeStore, SqlNoticeStore
from backoffice.notices import NoticeManager
from backoffice.storage import InMemoryStorageClient, S3StorageClient, StorageClient

_notice_store: NoticeStore | None = None
_storage_client: StorageClient | None = None
_notice_manager: NoticeManager | None = None


def get_notice_store() -> NoticeStore:
    """
    Return a singleton store so notices persist across requests.
    """
    global _notice_store
    if _notice_store:
        return _notice_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _notice_store = InMemoryNoticeStore()
    else:
        _notice_store = SqlNoticeStore(settings.database_url)
    return _notice_store


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.storage_public_base_url or "",
        )
    return _storage_client


def get_notice_manager() -> NoticeManager:
    """
    Return the process-wide manager; its cached list and pending delete
    confirmations are shared by every admin request.
    """
    global _notice_manager
    if _notice_manager:
        return _notice_manager

    settings = get_settings()
    _notice_manager = NoticeManager(
        get_notice_store(),
        confirmation_ttl_seconds=settings.delete_confirmation_ttl_seconds,
    )
    return _notice_manager


def reset_dependencies() -> None:
    """Forget cached singletons (useful in tests)."""
    global _notice_store, _storage_client, _notice_manager
    _notice_store = None
    _storage_client = None
    _notice_manager = None
