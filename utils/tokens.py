"""
JWT access/refresh tokens via PyJWT.

Both kinds share one shape and are told apart by the token_type claim.
Validation pins the accepted algorithm list to the configured HMAC
algorithm, so "alg: none" and RS/HS confusion tokens are rejected before
the signature is even considered.
"""
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from services.errors import BadSignature, Expired, MalformedToken, WrongKind

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")
REQUIRED_CLAIMS = ["exp", "iat", "iss", "sub", "jti"]


class TokenKind(str, enum.Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenConfig:
    """Immutable token settings, built once from app config."""

    secret: str
    issuer: str
    access_expires: timedelta
    refresh_expires: timedelta
    algorithm: str = "HS256"
    leeway: timedelta = timedelta(0)

    def __post_init__(self):
        if not self.secret:
            raise ValueError("JWT secret must not be empty")
        if self.algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"JWT algorithm must be one of {HMAC_ALGORITHMS}, got {self.algorithm!r}")


@dataclass(frozen=True)
class Claims:
    user_id: str
    email: str
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    issuer: str
    token_id: str


class TokenManager:
    def __init__(self, config: TokenConfig):
        self.config = config

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in seconds (the expires_in response field)."""
        return int(self.config.access_expires.total_seconds())

    def generate_access_token(self, user_id: str, email: str, now: datetime | None = None) -> str:
        return self._generate(user_id, email, TokenKind.ACCESS, self.config.access_expires, now)

    def generate_refresh_token(self, user_id: str, email: str, now: datetime | None = None) -> str:
        return self._generate(user_id, email, TokenKind.REFRESH, self.config.refresh_expires, now)

    def validate_access_token(self, token: str) -> Claims:
        return self._validate(token, TokenKind.ACCESS)

    def validate_refresh_token(self, token: str) -> Claims:
        return self._validate(token, TokenKind.REFRESH)

    def _generate(self, user_id, email, kind: TokenKind, lifetime: timedelta, now=None) -> str:
        issued_at = int((now or datetime.now(timezone.utc)).timestamp())
        payload = {
            "iss": self.config.issuer,
            "sub": str(user_id),
            "user_id": str(user_id),
            "email": email,
            "token_type": kind.value,
            "iat": issued_at,
            "exp": issued_at + int(lifetime.total_seconds()),
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

    def _validate(self, token: str, expected: TokenKind) -> Claims:
        """
        Decode and verify a token of the expected kind.
        Raises MalformedToken, BadSignature, Expired or WrongKind.
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken()
        try:
            decoded = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                leeway=self.config.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise Expired() from exc
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            raise BadSignature() from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedToken() from exc

        try:
            kind = TokenKind(decoded.get("token_type"))
        except ValueError as exc:
            raise MalformedToken() from exc

        if kind is not expected:
            raise WrongKind()

        user_id = decoded.get("user_id") or decoded["sub"]
        return Claims(
            user_id=str(user_id),
            email=decoded.get("email", ""),
            kind=kind,
            issued_at=datetime.fromtimestamp(decoded["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(decoded["exp"], tz=timezone.utc),
            issuer=decoded["iss"],
            token_id=decoded["jti"],
        )
