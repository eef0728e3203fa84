"""
AuthService: signup / login / refresh and the session housekeeping around them.

Session lifecycle per token pair:
  [no session] --signup/login--> [active]
  [active] --refresh(valid token)--> [active] (old refresh revoked, new pair issued)
  [active] --refresh(bad token)--> rejected, nothing changes
  [active] --refresh token expired or revoked--> [no session]

Rotation revokes the presented token with a conditional update before the
new pair is stored. If storing the new token fails the user is simply logged
out: a half-rotated session never validates.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from models.base_model import utcnow
from models.refresh_token import RefreshToken
from models.refresh_token_store import RefreshTokenStore
from models.user import User
from models.user_store import UserStore
from services.errors import AlreadyExists, InvalidCredentials, InvalidToken, ValidationFailure
from utils.security import PasswordHasher
from utils.tokens import TokenManager

logger = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = TOKEN_TYPE
    user: Optional[User] = field(default=None, repr=False)


class AuthService:
    def __init__(self, users: UserStore, refresh_tokens: RefreshTokenStore,
                 hasher: PasswordHasher, tokens: TokenManager):
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.hasher = hasher
        self.tokens = tokens
        # Unknown emails still pay for one verify so timing does not leak account existence
        self._dummy_hash = hasher.hash("timing-equalization-dummy")

    def signup(self, email: str, password: str) -> TokenPair:
        """Create an account and open its first session. Raises AlreadyExists or ValidationFailure."""
        if not email or not password:
            raise ValidationFailure("Email and password are required")
        if self.users.find_by_email(email) is not None:
            raise AlreadyExists()

        user = User(email=email, password_hash=self.hasher.hash(password))
        # The partial unique index is the real guard against concurrent signups
        self.users.create(user)
        logger.info("user %s signed up", user.id)
        return self._issue(user)

    def login(self, email: str, password: str) -> TokenPair:
        """
        Open a new session. Prior sessions stay valid.
        Unknown email and wrong password both raise the same InvalidCredentials.
        """
        user = self.users.find_by_email(email)
        if user is None:
            self.hasher.verify(password, self._dummy_hash)
            logger.info("login rejected: unknown email")
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.password_hash):
            logger.info("login rejected for user %s: bad password", user.id)
            raise InvalidCredentials()

        if self.hasher.needs_rehash(user.password_hash):
            user.password_hash = self.hasher.hash(password)
            self.users.update(user)
            logger.info("upgraded password hash parameters for user %s", user.id)

        return self._issue(user)

    def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token into a new pair. Every failure is InvalidToken."""
        try:
            claims = self.tokens.validate_refresh_token(refresh_token)
        except InvalidToken as exc:
            logger.info("refresh rejected: %s", exc.reason)
            raise

        record = self.refresh_tokens.get_by_token(refresh_token)
        if record is None:
            logger.info("refresh rejected: token not stored")
            raise InvalidToken("not_found")
        if not record.is_valid():
            logger.warning("refresh rejected: stored token %s revoked or expired", record.id)
            raise InvalidToken("revoked_or_expired")

        # Lost a race with a concurrent refresh of the same token
        if not self.refresh_tokens.revoke_if_active(record.id):
            logger.warning("refresh rejected: token %s already rotated", record.id)
            raise InvalidToken("already_rotated")

        user = self.users.find_by_id(claims.user_id)
        if user is None:
            logger.info("refresh rejected: user %s no longer exists", claims.user_id)
            raise InvalidToken("user_gone")

        pair = self._issue(user)
        pair.user = None
        return pair

    def logout(self, user_id: str, refresh_token: str) -> bool:
        """Revoke one refresh token of the caller. Unknown tokens are a no-op."""
        record = self.refresh_tokens.get_by_token(refresh_token)
        if record is None or record.user_id != user_id:
            return False
        self.refresh_tokens.revoke(record.id)
        return True

    def logout_all(self, user_id: str) -> int:
        return self.refresh_tokens.revoke_all_for_user(user_id)

    def list_sessions(self, user_id: str) -> List[RefreshToken]:
        """Active sessions only: unrevoked and unexpired, newest first."""
        now = utcnow()
        return [r for r in self.refresh_tokens.get_by_user_id(user_id) if r.is_valid(now)]

    def purge_expired(self) -> int:
        removed = self.refresh_tokens.delete_expired()
        logger.info("purged %d expired refresh token(s)", removed)
        return removed

    def _issue(self, user: User) -> TokenPair:
        access = self.tokens.generate_access_token(user.id, user.email)
        refresh = self.tokens.generate_refresh_token(user.id, user.email)
        self.refresh_tokens.create(
            RefreshToken(
                user_id=user.id,
                token=refresh,
                expires_at=utcnow() + self.tokens.config.refresh_expires,
            )
        )
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=self.tokens.access_expires_in,
            user=user,
        )
