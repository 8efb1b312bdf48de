"""Custom SQLAlchemy types with cross-DB support."""

import uuid

from sqlalchemy import String, TypeDecorator


class GUID(TypeDecorator):
    """
    Platform-independent UUID type.

    - PostgreSQL: native UUID column, values stay ``uuid.UUID``
    - Anything else (SQLite in tests): CHAR(36) holding the canonical string
    """

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID as PG_UUID

            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        return value if dialect.name == "postgresql" else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))
