"""
RefreshToken model: one row per issued refresh token so we can revoke and rotate them.
Fields:
- id (String(36) UUID primary key)
- user_id (String(36)) - references users.id
- token (Text; the signed token string itself, unique alternate key)
- expires_at, created_at, updated_at
- revoked_at (nullable; set once, never cleared)

A row is valid iff revoked_at is NULL and now < expires_at.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from models.base_model import BaseModel, Base, as_naive_utc, utcnow


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Signed tokens carry the email and issuer, so their length is not fixed
    token = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_valid(self, now: datetime | None = None) -> bool:
        now = as_naive_utc(now) or utcnow()
        if self.revoked_at is not None:
            return False
        return now < as_naive_utc(self.expires_at)

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id} revoked={self.is_revoked}>"
