"""
RefreshTokenStore: persistence for issued refresh tokens.

Every method is its own transaction (commit on success, rollback on error).
SQLAlchemy errors never escape: they surface as StorageFailure, or as
DuplicateToken when the unique token constraint is hit.

Rotation relies on revoke_if_active(): a single conditional UPDATE, so when
two requests race on the same refresh token only one of them sees rowcount 1.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.base_model import _uuid_str, as_naive_utc, utcnow
from models.refresh_token import RefreshToken
from services.errors import DuplicateToken, StorageFailure

logger = logging.getLogger(__name__)


class RefreshTokenStore:
    def __init__(self, storage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    def create(self, record: RefreshToken) -> RefreshToken:
        """Assign an id if missing, stamp created/updated time and insert."""
        now = utcnow()
        if not record.id:
            record.id = _uuid_str()
        record.created_at = now
        record.updated_at = now
        record.expires_at = as_naive_utc(record.expires_at)
        try:
            self.storage.new(record)
            self.storage.save()
        except IntegrityError as exc:
            logger.warning("duplicate refresh token for user %s", record.user_id)
            raise DuplicateToken() from exc
        except SQLAlchemyError as exc:
            logger.exception("failed to store refresh token")
            raise StorageFailure() from exc
        return record

    def get_by_token(self, token: str) -> Optional[RefreshToken]:
        """Exact-match lookup; None when absent."""
        try:
            return (
                self.session.query(RefreshToken)
                .populate_existing()
                .filter(RefreshToken.token == token)
                .first()
            )
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StorageFailure() from exc

    def get_by_user_id(self, user_id: str) -> List[RefreshToken]:
        """Unrevoked rows for a user, newest first."""
        try:
            return (
                self.session.query(RefreshToken)
                .populate_existing()
                .filter(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
                .order_by(RefreshToken.created_at.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StorageFailure() from exc

    def revoke(self, token_id: str) -> None:
        """Idempotent: revoking an already revoked row changes nothing."""
        self.revoke_if_active(token_id)

    def revoke_if_active(self, token_id: str) -> bool:
        """
        Set revoked_at only if it is still NULL.
        Returns True when this call performed the revocation.
        """
        now = utcnow()
        try:
            updated = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
                .update({"revoked_at": now, "updated_at": now}, synchronize_session=False)
            )
            self.storage.save()
        except SQLAlchemyError as exc:
            logger.exception("failed to revoke refresh token %s", token_id)
            raise StorageFailure() from exc
        return updated == 1

    def revoke_all_for_user(self, user_id: str) -> int:
        """Revoke every active row of a user ("log out everywhere")."""
        now = utcnow()
        try:
            updated = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
                .update({"revoked_at": now, "updated_at": now}, synchronize_session=False)
            )
            self.storage.save()
        except SQLAlchemyError as exc:
            logger.exception("failed to revoke refresh tokens for user %s", user_id)
            raise StorageFailure() from exc
        logger.info("revoked %d refresh token(s) for user %s", updated, user_id)
        return updated

    def delete_expired(self, now: Optional[datetime] = None) -> int:
        """Physically remove rows past their expiry. Returns the number removed."""
        cutoff = as_naive_utc(now) or utcnow()
        try:
            deleted = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.expires_at < cutoff)
                .delete(synchronize_session=False)
            )
            self.storage.save()
        except SQLAlchemyError as exc:
            logger.exception("failed to delete expired refresh tokens")
            raise StorageFailure() from exc
        return deleted
