"""
Ordered notice list used by the public banner.

``NoticeManager`` keeps the last successfully fetched list and refills it
from the store after every successful mutation; it never patches the list
locally. Moves exchange ``display_order`` with the adjacent notice in a
single atomic batch.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from backoffice.db import NoticeRecord, NoticeStore, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_CONFIRMATION_TTL_SECONDS = 300


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class NoticeNotFoundError(LookupError):
    """Raised when a notice id is not in the store."""


class ConfirmationError(Exception):
    """Raised for unknown, consumed or expired delete confirmations."""


@dataclass
class DeleteConfirmation:
    token: str
    notice_id: str
    message: str
    expires_at: float

    def expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at


class NoticeManager:
    """Operator-facing view over the ordered notice collection."""

    def __init__(
        self,
        store: NoticeStore,
        *,
        confirmation_ttl_seconds: float = DEFAULT_CONFIRMATION_TTL_SECONDS,
    ):
        self.store = store
        self.confirmation_ttl_seconds = confirmation_ttl_seconds
        self.notices: list[NoticeRecord] = []
        self._pending_deletes: Dict[str, DeleteConfirmation] = {}

    def list(self) -> list[NoticeRecord]:
        """
        Reload every notice ordered by ``display_order``.

        A failed read shows an empty list instead of blocking the caller.
        """
        try:
            self.notices = self.store.select(order_by="display_order", ascending=True)
        except PersistenceError as exc:
            logger.warning("Failed to load notices: %s", exc)
            self.notices = []
        return list(self.notices)

    def active(self) -> list[NoticeRecord]:
        """Active notices in display order, for the public banner."""
        try:
            return self.store.select(filters={"is_active": True})
        except PersistenceError as exc:
            logger.warning("Failed to load active notices: %s", exc)
            return []

    def _refresh(self) -> None:
        # Adjacency and the next order always come from a fresh read; the
        # CLI and other workers write to the same table.
        try:
            self.notices = self.store.select(order_by="display_order", ascending=True)
        except PersistenceError as exc:
            logger.warning("Failed to load notices: %s", exc)
            raise

    def _index_of(self, notice_id: str) -> int:
        self._refresh()
        for index, notice in enumerate(self.notices):
            if notice.id == notice_id:
                return index
        raise NoticeNotFoundError(notice_id)

    def get(self, notice_id: str) -> NoticeRecord:
        index = self._index_of(notice_id)
        return self.notices[index]

    def add(self, message: str) -> Optional[NoticeRecord]:
        """Append a notice after the current last one. Blank messages are ignored."""
        message = (message or "").strip()
        if not message:
            return None
        self._refresh()
        next_order = max((n.display_order for n in self.notices), default=0) + 1
        try:
            record = self.store.insert({"message": message, "display_order": next_order})
        except PersistenceError as exc:
            logger.warning("Failed to add notice: %s", exc)
            raise
        logger.info("Added notice %s at position %d", record.id, next_order)
        self.list()
        return record

    def update_message(self, notice_id: str, message: str) -> None:
        message = (message or "").strip()
        if not message:
            raise ValueError("Notice message must not be blank")
        self._index_of(notice_id)
        self._write({"message": message}, notice_id, "edit")
        self.list()

    def toggle_active(self, notice_id: str) -> bool:
        """Flip ``is_active``; returns the new value."""
        notice = self.get(notice_id)
        is_active = not notice.is_active
        self._write({"is_active": is_active}, notice_id, "toggle")
        logger.info("Notice %s is now %s", notice_id, "active" if is_active else "hidden")
        self.list()
        return is_active

    def _write(self, patch: dict, notice_id: str, action: str) -> None:
        try:
            self.store.update(patch, {"id": notice_id})
        except PersistenceError as exc:
            logger.warning("Failed to %s notice %s: %s", action, notice_id, exc)
            raise

    def request_delete(self, notice_id: str) -> DeleteConfirmation:
        """First phase of a delete; nothing is written until confirmed."""
        notice = self.get(notice_id)
        self._drop_expired()
        confirmation = DeleteConfirmation(
            token=uuid.uuid4().hex,
            notice_id=notice.id,
            message=notice.message,
            expires_at=time.time() + self.confirmation_ttl_seconds,
        )
        self._pending_deletes[confirmation.token] = confirmation
        return confirmation

    def confirm_delete(self, token: str) -> str:
        """Delete the notice behind ``token``; a failed write leaves the token usable."""
        confirmation = self._pending_deletes.get(token)
        if confirmation is None:
            raise ConfirmationError("Unknown or already used confirmation token")
        if confirmation.expired():
            del self._pending_deletes[token]
            raise ConfirmationError("Confirmation token has expired")
        self.delete(confirmation.notice_id)
        self._pending_deletes.pop(token, None)
        return confirmation.notice_id

    def cancel_delete(self, token: str) -> bool:
        return self._pending_deletes.pop(token, None) is not None

    def _drop_expired(self) -> None:
        now = time.time()
        for token, confirmation in list(self._pending_deletes.items()):
            if confirmation.expired(now):
                del self._pending_deletes[token]

    def delete(self, notice_id: str) -> None:
        """Delete without asking; callers must have obtained confirmation."""
        try:
            self.store.delete({"id": notice_id})
        except PersistenceError as exc:
            logger.warning("Failed to delete notice %s: %s", notice_id, exc)
            raise
        logger.info("Deleted notice %s", notice_id)
        self.list()

    def move(self, notice_id: str, direction: MoveDirection | str) -> bool:
        """
        Swap the notice with its neighbour. Returns False when the notice is
        already first (up) or last (down) and nothing was written.
        """
        direction = MoveDirection(direction)
        index = self._index_of(notice_id)
        if direction is MoveDirection.UP and index == 0:
            return False
        if direction is MoveDirection.DOWN and index == len(self.notices) - 1:
            return False

        swap_index = index - 1 if direction is MoveDirection.UP else index + 1
        current = self.notices[index]
        neighbour = self.notices[swap_index]
        try:
            self.store.update_batch(
                [
                    ({"display_order": neighbour.display_order}, {"id": current.id}),
                    ({"display_order": current.display_order}, {"id": neighbour.id}),
                ]
            )
        except PersistenceError as exc:
            logger.warning("Failed to move notice %s %s: %s", notice_id, direction.value, exc)
            raise
        logger.info("Moved notice %s %s", notice_id, direction.value)
        self.list()
        return True
