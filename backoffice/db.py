"""
Notice store abstraction for Postgres and an in-memory test implementation.

Both stores expose the same row-level contract over the ``notices``
collection: ``select``, ``insert``, ``update``, ``update_batch`` and
``delete``. Filters are equality maps keyed by column name.
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    select as sa_select,
    true,
)
from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

NOTICE_COLUMNS = ("id", "message", "is_active", "display_order", "created_at")
WRITABLE_COLUMNS = ("message", "is_active", "display_order")

Filters = Dict[str, object]
Patch = Dict[str, object]


class PersistenceError(Exception):
    """Raised when the notice store rejects a read or a write."""


class NoticeStore(Protocol):
    """Interface for notice persistence."""

    def select(
        self,
        *,
        filters: Optional[Filters] = None,
        order_by: str = "display_order",
        ascending: bool = True,
    ) -> list["NoticeRecord"]:
        ...

    def insert(self, values: Patch) -> "NoticeRecord":
        ...

    def update(self, patch: Patch, filters: Filters) -> int:
        ...

    def update_batch(self, updates: Iterable[tuple[Patch, Filters]]) -> int:
        ...

    def delete(self, filters: Filters) -> int:
        ...


@dataclass
class NoticeRecord:
    id: str
    message: str
    display_order: int
    is_active: bool = True
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "message": self.message,
            "is_active": self.is_active,
            "display_order": self.display_order,
            "created_at": self.created_at,
        }


def _check_columns(names: Iterable[str], allowed: Iterable[str]) -> None:
    unknown = sorted(set(names) - set(allowed))
    if unknown:
        raise PersistenceError(
            f"Unknown column(s) for notices: {', '.join(unknown)}"
        )


def _check_filters(filters: Filters) -> None:
    if not filters:
        raise PersistenceError("A filter is required for notice writes")
    _check_columns(filters, NOTICE_COLUMNS)


def _check_insert(values: Patch) -> None:
    _check_columns(values, WRITABLE_COLUMNS)
    for required in ("message", "display_order"):
        if values.get(required) is None:
            raise PersistenceError(
                f'null value in column "{required}" violates not-null constraint'
            )


class InMemoryNoticeStore:
    """Simple in-memory notice table for development and tests."""

    def __init__(self):
        self.rows: Dict[str, NoticeRecord] = {}

    @staticmethod
    def _matches(row: NoticeRecord, filters: Optional[Filters]) -> bool:
        return all(getattr(row, key) == value for key, value in (filters or {}).items())

    def select(
        self,
        *,
        filters: Optional[Filters] = None,
        order_by: str = "display_order",
        ascending: bool = True,
    ) -> list[NoticeRecord]:
        _check_columns(filters or {}, NOTICE_COLUMNS)
        _check_columns([order_by], NOTICE_COLUMNS)
        rows = [replace(row) for row in self.rows.values() if self._matches(row, filters)]
        rows.sort(
            key=lambda row: (getattr(row, order_by), row.created_at),
            reverse=not ascending,
        )
        return rows

    def insert(self, values: Patch) -> NoticeRecord:
        _check_insert(values)
        record = NoticeRecord(
            id=uuid.uuid4().hex,
            message=values["message"],
            display_order=values["display_order"],
            is_active=values.get("is_active", True),
        )
        self.rows[record.id] = record
        return replace(record)

    def _apply(self, rows: Dict[str, NoticeRecord], patch: Patch, filters: Filters) -> int:
        _check_columns(patch, WRITABLE_COLUMNS)
        _check_filters(filters)
        changed = 0
        for row in rows.values():
            if self._matches(row, filters):
                for key, value in patch.items():
                    setattr(row, key, value)
                changed += 1
        return changed

    def update(self, patch: Patch, filters: Filters) -> int:
        return self._apply(self.rows, patch, filters)

    def update_batch(self, updates: Iterable[tuple[Patch, Filters]]) -> int:
        # Work on copies and swap them in only once every update applied.
        staged = {key: replace(row) for key, row in self.rows.items()}
        changed = 0
        for patch, filters in updates:
            changed += self._apply(staged, patch, filters)
        self.rows = staged
        return changed

    def delete(self, filters: Filters) -> int:
        _check_filters(filters)
        doomed = [key for key, row in self.rows.items() if self._matches(row, filters)]
        for key in doomed:
            del self.rows[key]
        return len(doomed)

    def reset(self) -> None:
        """Clear all stored rows (useful in tests)."""
        self.rows.clear()


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        reason = getattr(exc, "orig", None) or exc
        raise PersistenceError(f"Could not {action} notices: {reason}") from exc


class SqlNoticeStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlNoticeStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_record(self, row: "NoticeRow") -> NoticeRecord:
        return NoticeRecord(
            id=row.id,
            message=row.message,
            is_active=row.is_active,
            display_order=row.display_order,
            created_at=row.created_at,
        )

    @staticmethod
    def _where(stmt, filters: Filters):
        for key, value in filters.items():
            stmt = stmt.where(getattr(NoticeRow, key) == value)
        return stmt

    def select(
        self,
        *,
        filters: Optional[Filters] = None,
        order_by: str = "display_order",
        ascending: bool = True,
    ) -> list[NoticeRecord]:
        _check_columns(filters or {}, NOTICE_COLUMNS)
        _check_columns([order_by], NOTICE_COLUMNS)
        column = getattr(NoticeRow, order_by)
        stmt = self._where(sa_select(NoticeRow), filters or {}).order_by(
            column.asc() if ascending else column.desc(),
            NoticeRow.created_at.asc(),
        )
        with _store_errors("load"), self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(row) for row in rows]

    def insert(self, values: Patch) -> NoticeRecord:
        _check_insert(values)
        with _store_errors("insert"), self.Session() as session:
            row = NoticeRow(
                id=uuid.uuid4().hex,
                created_at=time.time(),
                **values,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def _update_stmt(self, patch: Patch, filters: Filters):
        _check_columns(patch, WRITABLE_COLUMNS)
        _check_filters(filters)
        return self._where(sa_update(NoticeRow), filters).values(**patch)

    def update(self, patch: Patch, filters: Filters) -> int:
        stmt = self._update_stmt(patch, filters)
        with _store_errors("update"), self.Session() as session:
            result = session.execute(stmt)
            session.commit()
            return result.rowcount or 0

    def update_batch(self, updates: Iterable[tuple[Patch, Filters]]) -> int:
        statements = [self._update_stmt(patch, filters) for patch, filters in updates]
        changed = 0
        # session.begin() commits on success and rolls back on any error.
        with _store_errors("update"), self.Session() as session, session.begin():
            for stmt in statements:
                changed += session.execute(stmt).rowcount or 0
        return changed

    def delete(self, filters: Filters) -> int:
        _check_filters(filters)
        stmt = self._where(sa_delete(NoticeRow), filters)
        with _store_errors("delete"), self.Session() as session:
            result = session.execute(stmt)
            session.commit()
            return result.rowcount or 0


Base = declarative_base()


class NoticeRow(Base):
    __tablename__ = "notices"

    id = Column(String, primary_key=True)
    message = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    display_order = Column(Integer, nullable=False, index=True)
    created_at = Column(Float, nullable=False)
