"""
UserStore: the user directory.

Soft-deleted users are invisible to every lookup here. Email uniqueness among
live users is enforced by the uq_users_email_active partial index; create()
turns that violation into AlreadyExists so the pre-check in the service layer
is only an optimization.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.base_model import utcnow
from models.user import User
from services.errors import AlreadyExists, StorageFailure

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, storage):
        self.storage = storage

    def _live(self):
        return self.storage.get_session().query(User).filter(User.deleted_at.is_(None))

    def find_by_email(self, email: str) -> Optional[User]:
        try:
            return self._live().filter(User.email == email).first()
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StorageFailure() from exc

    def find_by_id(self, user_id: str) -> Optional[User]:
        try:
            return self._live().filter(User.id == user_id).first()
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StorageFailure() from exc

    def list(self, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        """One page of live users, newest first, plus the total count."""
        try:
            query = self._live()
            total = query.count()
            rows = (
                query.order_by(User.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self.storage.rollback()
            raise StorageFailure() from exc
        return rows, total

    def create(self, user: User) -> User:
        return self._commit(user, "create")

    def update(self, user: User) -> User:
        user.updated_at = utcnow()
        return self._commit(user, "update")

    def soft_delete(self, user: User) -> User:
        user.soft_delete()
        return self._commit(user, "delete")

    def _commit(self, user: User, action: str) -> User:
        try:
            self.storage.new(user)
            self.storage.save()
        except IntegrityError as exc:
            logger.info("user %s rejected by unique email constraint", action)
            raise AlreadyExists() from exc
        except SQLAlchemyError as exc:
            logger.exception("user %s failed", action)
            raise StorageFailure() from exc
        return user
