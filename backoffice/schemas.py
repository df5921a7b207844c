"""
Pydantic schemas for the back-office API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from backoffice.notices import MoveDirection


class Notice(BaseModel):
    id: str
    message: str
    is_active: bool
    display_order: int


class PublicNotice(BaseModel):
    id: str
    message: str
    display_order: int


class Notification(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class NoticeListResponse(BaseModel):
    notices: list[Notice]
    notification: Optional[Notification] = None


class ActiveNoticesResponse(BaseModel):
    notices: list[PublicNotice]
    rotation_interval_ms: int


class AddNoticeRequest(BaseModel):
    message: str = Field(..., max_length=500)


class UpdateNoticeRequest(BaseModel):
    message: str = Field(..., max_length=500)


class MoveNoticeRequest(BaseModel):
    direction: MoveDirection


class DeleteRequestResponse(BaseModel):
    token: str
    notice_id: str
    message: str
    expires_at: float


class ConfirmDeleteRequest(BaseModel):
    token: str


class UploadResponse(BaseModel):
    path: str
    public_url: str
