"""
User accounts and their authorities (roles).
"""

from typing import List

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, String, Table, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel
from .types import GUID

ROLE_ADMIN = "ROLE_ADMIN"
ROLE_USER = "ROLE_USER"


user_authorities = Table(
    "user_authorities",
    BaseModel.metadata,
    Column("user_id", GUID(), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("authority_id", GUID(), ForeignKey("authorities.id", ondelete="CASCADE"), primary_key=True),
)


class Authority(BaseModel):
    """Role granted to users; static reference data."""

    __tablename__ = "authorities"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Authority(name='{self.name}')>"


class User(BaseModel):
    """User account with username/password auth."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    authorities: Mapped[List[Authority]] = relationship(
        Authority,
        secondary=user_authorities,
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("length(username) <= 50", name="ck_users_username_len"),
    )

    def __repr__(self) -> str:
        return f"<User(username='{self.username}')>"

    @staticmethod
    def normalize(value: str) -> str:
        return value.strip().lower()

    @property
    def authority_names(self) -> List[str]:
        return sorted(authority.name for authority in self.authorities)


@event.listens_for(User, "before_insert", propagate=True)
def _normalize_user_before_insert(mapper, connection, target: User):
    target.username = User.normalize(target.username)
    target.email = User.normalize(target.email)
