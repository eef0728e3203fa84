from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from models.refresh_token_store import RefreshTokenStore
from models.user import User
from models.user_store import UserStore
from services.errors import AlreadyExists, NotFound, ValidationFailure
from utils.security import PasswordHasher

logger = logging.getLogger(__name__)


class UserService:
    """CRUD for the users resource. Security events revoke every session of the user."""

    def __init__(self, users: UserStore, refresh_tokens: RefreshTokenStore, hasher: PasswordHasher):
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.hasher = hasher

    def list(self, page: int, limit: int) -> Tuple[List[User], int]:
        return self.users.list(page, limit)

    def get(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def create(self, email: str, password: str) -> User:
        if self.users.find_by_email(email) is not None:
            raise AlreadyExists()
        user = User(email=email, password_hash=self.hasher.hash(password))
        return self.users.create(user)

    def update(self, user_id: str, email: Optional[str] = None, password: Optional[str] = None) -> User:
        if not email and not password:
            raise ValidationFailure("Nothing to update")
        user = self.get(user_id)
        if email and email != user.email:
            other = self.users.find_by_email(email)
            if other is not None:
                raise AlreadyExists()
            user.email = email
        if password:
            user.password_hash = self.hasher.hash(password)
        self.users.update(user)
        if password:
            self.refresh_tokens.revoke_all_for_user(user.id)
            logger.info("password changed for user %s; sessions revoked", user.id)
        return user

    def delete(self, user_id: str) -> None:
        user = self.get(user_id)
        self.users.soft_delete(user)
        self.refresh_tokens.revoke_all_for_user(user.id)
        logger.info("user %s deleted", user.id)
