"""
HTTP routes for the back-office API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from backoffice.config import Settings, get_settings
from backoffice.db import NoticeRecord, PersistenceError
from backoffice.dependencies import get_notice_manager, get_storage_client
from backoffice.notices import ConfirmationError, NoticeManager, NoticeNotFoundError
from backoffice.schemas import (
    ActiveNoticesResponse,
    AddNoticeRequest,
    ConfirmDeleteRequest,
    DeleteRequestResponse,
    MoveNoticeRequest,
    Notice,
    NoticeListResponse,
    Notification,
    PublicNotice,
    UpdateNoticeRequest,
    UploadResponse,
)
from backoffice.storage import StorageClient, StorageError, build_upload_path

logger = logging.getLogger(__name__)

router = APIRouter()


def _list_response(
    notices: list[NoticeRecord], notification: Notification | None = None
) -> NoticeListResponse:
    return NoticeListResponse(
        notices=[
            Notice(
                id=n.id,
                message=n.message,
                is_active=n.is_active,
                display_order=n.display_order,
            )
            for n in notices
        ],
        notification=notification,
    )


def _error(status_code: int, description: str, title: str = "Error") -> HTTPException:
    detail = Notification(title=title, description=description, variant="destructive")
    return HTTPException(status_code=status_code, detail=detail.model_dump())


def _not_found(notice_id: str) -> HTTPException:
    return _error(404, f"Notice {notice_id} not found")


@router.get("/notices/active", response_model=ActiveNoticesResponse)
def active_notices(
    manager: NoticeManager = Depends(get_notice_manager),
    settings: Settings = Depends(get_settings),
):
    """Feed for the rotating banner on the public site."""
    notices = [
        PublicNotice(id=n.id, message=n.message, display_order=n.display_order)
        for n in manager.active()
    ]
    return ActiveNoticesResponse(
        notices=notices, rotation_interval_ms=settings.notice_rotation_ms
    )


@router.get("/admin/notices", response_model=NoticeListResponse)
def list_notices(manager: NoticeManager = Depends(get_notice_manager)):
    return _list_response(manager.list())


@router.post("/admin/notices", response_model=NoticeListResponse)
def add_notice(
    payload: AddNoticeRequest, manager: NoticeManager = Depends(get_notice_manager)
):
    try:
        record = manager.add(payload.message)
    except PersistenceError as exc:
        raise _error(502, str(exc))
    if record is None:
        return _list_response(manager.list())
    return _list_response(
        manager.notices, Notification(title="Success", description="Notice added")
    )


@router.patch("/admin/notices/{notice_id}", response_model=NoticeListResponse)
def update_notice(
    notice_id: str,
    payload: UpdateNoticeRequest,
    manager: NoticeManager = Depends(get_notice_manager),
):
    try:
        manager.update_message(notice_id, payload.message)
    except NoticeNotFoundError:
        raise _not_found(notice_id)
    except ValueError as exc:
        raise _error(422, str(exc))
    except PersistenceError as exc:
        raise _error(502, str(exc))
    return _list_response(manager.notices)


@router.post("/admin/notices/{notice_id}/toggle", response_model=NoticeListResponse)
def toggle_notice(
    notice_id: str, manager: NoticeManager = Depends(get_notice_manager)
):
    try:
        manager.toggle_active(notice_id)
    except NoticeNotFoundError:
        raise _not_found(notice_id)
    except PersistenceError as exc:
        raise _error(502, str(exc))
    return _list_response(manager.notices)


@router.post("/admin/notices/{notice_id}/move", response_model=NoticeListResponse)
def move_notice(
    notice_id: str,
    payload: MoveNoticeRequest,
    manager: NoticeManager = Depends(get_notice_manager),
):
    try:
        manager.move(notice_id, payload.direction)
    except NoticeNotFoundError:
        raise _not_found(notice_id)
    except PersistenceError as exc:
        raise _error(502, str(exc))
    return _list_response(manager.notices)


@router.post(
    "/admin/notices/{notice_id}/delete-request",
    response_model=DeleteRequestResponse,
    status_code=202,
)
def request_notice_delete(
    notice_id: str, manager: NoticeManager = Depends(get_notice_manager)
):
    try:
        confirmation = manager.request_delete(notice_id)
    except NoticeNotFoundError:
        raise _not_found(notice_id)
    except PersistenceError as exc:
        raise _error(502, str(exc))
    return DeleteRequestResponse(
        token=confirmation.token,
        notice_id=confirmation.notice_id,
        message=confirmation.message,
        expires_at=confirmation.expires_at,
    )


@router.post("/admin/notices/delete-confirm", response_model=NoticeListResponse)
def confirm_notice_delete(
    payload: ConfirmDeleteRequest,
    manager: NoticeManager = Depends(get_notice_manager),
):
    try:
        manager.confirm_delete(payload.token)
    except ConfirmationError as exc:
        raise _error(410, str(exc))
    except PersistenceError as exc:
        raise _error(502, str(exc))
    return _list_response(
        manager.notices, Notification(title="Deleted", description="Notice removed")
    )


@router.delete("/admin/notices/delete-requests/{token}", status_code=204)
def cancel_notice_delete(
    token: str, manager: NoticeManager = Depends(get_notice_manager)
):
    if not manager.cancel_delete(token):
        raise _error(404, "Confirmation not found")


@router.post("/admin/uploads", response_model=UploadResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    folder: str = Form("uploads"),
    storage: StorageClient = Depends(get_storage_client),
):
    if not file.filename:
        raise _error(400, "File name required", title="Upload Error")
    try:
        path = build_upload_path(folder, file.filename)
    except ValueError as exc:
        raise _error(400, str(exc), title="Upload Error")
    data = await file.read()
    try:
        storage.upload_bytes(path, data, content_type=file.content_type)
    except StorageError as exc:
        logger.warning("Upload failed for %s: %s", file.filename, exc)
        raise _error(502, str(exc), title="Upload Error")
    return UploadResponse(path=path, public_url=storage.get_public_url(path))
