# Refresh tokens; only the sha256 of the raw value is stored
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseModel, as_utc, utcnow
from .types import GUID


class RefreshToken(BaseModel):
    """Long-lived token traded for new access tokens."""

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    remember_me: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("idx_refresh_tokens_user_revoked", "user_id", "revoked"),
    )

    # raw value handed to the client once; never persisted
    raw_token = None

    def __repr__(self) -> str:
        return f"<RefreshToken(user_id={self.user_id}, revoked={self.revoked})>"

    @property
    def is_expired(self) -> bool:
        expires_at = as_utc(self.expires_at)
        return expires_at is None or datetime.now(timezone.utc) >= expires_at
