from datetime import datetime, timezone

from sqlalchemy import Column, Boolean, DateTime, String
from sqlalchemy.sql import func


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )


class SoftDeleteMixin:
    is_deleted = Column(Boolean, default=False, nullable=False)


class AuditMixin:
    # Free-text actor snapshot; identity is resolved outside this service.
    created_by = Column(String(150), nullable=True)
    updated_by = Column(String(150), nullable=True)
