"""
Base model class for all SQLAlchemy models.

WHY: Centralizing common model functionality (timestamps, ID) in a base class
ensures consistency across all models and reduces code duplication.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Timezone-aware current time for column defaults."""
    return datetime.now(timezone.utc)


def new_uuid() -> str:
    """String UUID primary key, matching the portal's uuid columns."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with improved type hints and async support.
    """

    pass


class CreatedAtMixin:
    """
    Mixin to add a created_at timestamp to models.

    WHY: Both tables are append-or-status-only; an update timestamp would
    change on idempotent re-verification, which must leave no trace.
    """

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class UUIDPrimaryKeyMixin:
    """Mixin to add a string UUID primary key to models."""

    id = Column(String(36), primary_key=True, default=new_uuid)
