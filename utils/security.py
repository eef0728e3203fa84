"""
Password hashing via argon2-cffi.

- Argon2id hashes are PHC strings ($argon2id$v=19$m=...,t=...,p=...$salt$hash),
  so salt and cost travel with the hash and verification needs nothing else.
- Raising the time cost only affects new hashes; old ones keep verifying and
  can be upgraded with needs_rehash() after a successful login.
- verify() never raises: a corrupt hash and a wrong password look the same.
  That includes text argon2 cannot encode (non-ASCII hashes, lone surrogates).
"""
from __future__ import annotations

import logging

from argon2 import PasswordHasher as _Argon2Hasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

from services.errors import HashingFailure

logger = logging.getLogger(__name__)

DEFAULT_TIME_COST = 3
DEFAULT_MEMORY_COST = 65536


class PasswordHasher:
    """Salted one-way password hashing with a configurable cost factor."""

    def __init__(self, time_cost: int = DEFAULT_TIME_COST, memory_cost: int = DEFAULT_MEMORY_COST,
                 parallelism: int = 1):
        self.time_cost = time_cost
        self._ph = _Argon2Hasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)

    def hash(self, password: str) -> str:
        """Hash a plaintext password. Raises HashingFailure on resource exhaustion."""
        try:
            return self._ph.hash(password)
        except HashingError as exc:
            logger.error("password hashing failed: %s", exc.__class__.__name__)
            raise HashingFailure() from exc

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError, UnicodeEncodeError):
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """True when the hash was made with parameters other than the current ones."""
        try:
            return self._ph.check_needs_rehash(password_hash)
        except (InvalidHashError, ValueError):
            return False
