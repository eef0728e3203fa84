"""
Error taxonomy for the authentication core.

Every failure path raises one of these. The HTTP layer (api/errors.py) maps
them to status codes; the messages below are the only text a client sees,
so they are deliberately generic for credentials and tokens.
"""
from __future__ import annotations


class AuthError(Exception):
    """Base class for all domain errors."""

    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationFailure(AuthError):
    code = "VALIDATION_ERROR"
    message = "Invalid input"


class AlreadyExists(AuthError):
    code = "CONFLICT"
    message = "User with this email already exists"


class NotFound(AuthError):
    code = "NOT_FOUND"
    message = "Resource not found"


class InvalidCredentials(AuthError):
    code = "UNAUTHORIZED"
    message = "Invalid email or password"


class InvalidToken(AuthError):
    """
    Any token problem. Subclasses record the real reason for logs;
    the client always gets the same message.
    """

    code = "UNAUTHORIZED"
    message = "Invalid or expired token"
    reason = "invalid"

    def __init__(self, reason: str | None = None):
        super().__init__()
        if reason:
            self.reason = reason


class MalformedToken(InvalidToken):
    reason = "malformed"


class BadSignature(InvalidToken):
    reason = "bad_signature"


class Expired(InvalidToken):
    reason = "expired"


class WrongKind(InvalidToken):
    reason = "wrong_kind"


class StorageFailure(AuthError):
    code = "INTERNAL_ERROR"
    message = "Storage failure"


class DuplicateToken(StorageFailure):
    message = "Refresh token already stored"


class HashingFailure(AuthError):
    code = "INTERNAL_ERROR"
    message = "Password hashing failed"
