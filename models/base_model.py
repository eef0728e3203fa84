#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the user auth API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- SoftDeleteMixin adds a deleted_at tombstone for soft-deletable models

Notes:
- Timestamps are naive UTC datetimes everywhere (utcnow() below) so values read
  back from SQLite and Postgres compare cleanly with values made in Python.
- SoftDelete: put mixin FIRST in your model's inheritance list.
  Example:
    class User(SoftDeleteMixin, BaseModel, Base): ...
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Drop tzinfo after converting to UTC; some drivers hand back aware values."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        If you pass created_at/updated_at explicitly (e.g., in tests), they will be set.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Ensure an id exists if user passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        """Human-friendly representation including id and fields."""
        return f"[{self.__class__.__name__}] ({self.id})"


class SoftDeleteMixin:
    """
    Adds a deleted_at timestamp. Rows with deleted_at set are tombstones:
    stores filter them out of every lookup, they are never physically removed.
    """

    deleted_at = Column(DateTime, nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, now: datetime | None = None):
        """Mark as deleted; the caller commits."""
        self.deleted_at = now or utcnow()
