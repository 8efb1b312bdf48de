# Base model and shared column groups
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .types import GUID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseModel(DeclarativeBase):
    """Common base for all models."""

    __abstract__ = True

    # using UUIDs everywhere
    id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class AuditMixin:
    """Who created / last touched the row."""

    created_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_modified_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class SoftDeleteMixin:
    """Rows flagged deleted stay in place until purged."""

    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    deleted_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def clear_deleted(self) -> None:
        self.deleted = False
        self.deleted_by = None
        self.deleted_at = None
