"""Unit tests for utils/tokens.py -- TokenManager.

Covers:
- access/refresh round trips return matching claims and kind
- cross-kind rejection in both directions
- expiry, tampering, wrong secret, wrong issuer
- algorithm confusion: "alg: none" and non-HMAC configs are refused
- two tokens minted in the same second are still distinct strings
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from services.errors import BadSignature, Expired, InvalidToken, MalformedToken, WrongKind
from utils.tokens import TokenConfig, TokenKind, TokenManager

USER_ID = "5f0c6c2e-8f3b-4a8e-9b2a-2d7b1f9b1c11"
EMAIL = "a@b.com"


def _flip_char(s: str, index: int) -> str:
    replacement = "A" if s[index] != "A" else "B"
    return s[:index] + replacement + s[index + 1:]


# ---------------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------------


def test_access_token_round_trip(tokens):
    claims = tokens.validate_access_token(tokens.generate_access_token(USER_ID, EMAIL))

    assert claims.user_id == USER_ID
    assert claims.email == EMAIL
    assert claims.kind is TokenKind.ACCESS
    assert claims.issuer == "user-auth-api-test"
    assert claims.expires_at - claims.issued_at == timedelta(minutes=15)


def test_refresh_token_round_trip(tokens):
    claims = tokens.validate_refresh_token(tokens.generate_refresh_token(USER_ID, EMAIL))

    assert claims.user_id == USER_ID
    assert claims.kind is TokenKind.REFRESH
    assert claims.expires_at - claims.issued_at == timedelta(days=7)


def test_tokens_minted_together_are_distinct(tokens):
    now = datetime.now(timezone.utc)
    a = tokens.generate_refresh_token(USER_ID, EMAIL, now=now)
    b = tokens.generate_refresh_token(USER_ID, EMAIL, now=now)
    assert a != b


def test_access_expires_in_is_whole_seconds(tokens):
    assert tokens.access_expires_in == 900


# ---------------------------------------------------------------------------
# Cross-kind rejection
# ---------------------------------------------------------------------------


def test_refresh_token_is_not_an_access_token(tokens):
    with pytest.raises(WrongKind):
        tokens.validate_access_token(tokens.generate_refresh_token(USER_ID, EMAIL))


def test_access_token_is_not_a_refresh_token(tokens):
    with pytest.raises(WrongKind):
        tokens.validate_refresh_token(tokens.generate_access_token(USER_ID, EMAIL))


def test_unknown_kind_is_malformed(token_config, tokens):
    now = int(datetime.now(timezone.utc).timestamp())
    forged = jwt.encode(
        {"iss": token_config.issuer, "sub": USER_ID, "iat": now, "exp": now + 60,
         "jti": "x", "token_type": "admin"},
        token_config.secret,
        algorithm="HS256",
    )
    with pytest.raises(MalformedToken):
        tokens.validate_access_token(forged)


# ---------------------------------------------------------------------------
# Expiry and tampering
# ---------------------------------------------------------------------------


def test_expired_access_token_is_rejected(tokens):
    issued = datetime.now(timezone.utc) - timedelta(hours=1)
    token = tokens.generate_access_token(USER_ID, EMAIL, now=issued)
    with pytest.raises(Expired):
        tokens.validate_access_token(token)


def test_expired_refresh_token_is_rejected(tokens):
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = tokens.generate_refresh_token(USER_ID, EMAIL, now=issued)
    with pytest.raises(Expired):
        tokens.validate_refresh_token(token)


def test_tampered_payload_is_rejected(tokens):
    token = tokens.generate_access_token(USER_ID, EMAIL)
    header, payload, signature = token.split(".")
    tampered = ".".join([header, _flip_char(payload, len(payload) // 2), signature])
    with pytest.raises(InvalidToken):
        tokens.validate_access_token(tampered)


def test_tampered_signature_is_rejected(tokens):
    token = tokens.generate_access_token(USER_ID, EMAIL)
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, _flip_char(signature, 5)])
    with pytest.raises(BadSignature):
        tokens.validate_access_token(tampered)


def test_token_signed_with_other_secret_is_rejected(token_config, tokens):
    other = TokenManager(TokenConfig(
        secret="another-secret-0123456789abcdef0123456789",
        issuer=token_config.issuer,
        access_expires=token_config.access_expires,
        refresh_expires=token_config.refresh_expires,
    ))
    with pytest.raises(BadSignature):
        tokens.validate_access_token(other.generate_access_token(USER_ID, EMAIL))


def test_token_from_other_issuer_is_rejected(token_config, tokens):
    other = TokenManager(TokenConfig(
        secret=token_config.secret,
        issuer="someone-else",
        access_expires=token_config.access_expires,
        refresh_expires=token_config.refresh_expires,
    ))
    with pytest.raises(MalformedToken):
        tokens.validate_access_token(other.generate_access_token(USER_ID, EMAIL))


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "....", None])
def test_garbage_is_malformed(tokens, garbage):
    with pytest.raises(MalformedToken):
        tokens.validate_access_token(garbage)


# ---------------------------------------------------------------------------
# Algorithm confusion
# ---------------------------------------------------------------------------


def test_alg_none_token_is_rejected(token_config, tokens):
    now = int(datetime.now(timezone.utc).timestamp())
    unsigned = jwt.encode(
        {"iss": token_config.issuer, "sub": USER_ID, "user_id": USER_ID, "email": EMAIL,
         "iat": now, "exp": now + 60, "jti": "x", "token_type": "access"},
        None,
        algorithm="none",
    )
    with pytest.raises(InvalidToken):
        tokens.validate_access_token(unsigned)


def test_other_hmac_algorithm_is_rejected(token_config, tokens):
    now = int(datetime.now(timezone.utc).timestamp())
    hs512 = jwt.encode(
        {"iss": token_config.issuer, "sub": USER_ID, "user_id": USER_ID, "email": EMAIL,
         "iat": now, "exp": now + 60, "jti": "x", "token_type": "access"},
        token_config.secret,
        algorithm="HS512",
    )
    with pytest.raises(BadSignature):
        tokens.validate_access_token(hs512)


@pytest.mark.parametrize("algorithm", ["RS256", "none", "ES256"])
def test_config_refuses_non_hmac_algorithms(algorithm):
    with pytest.raises(ValueError):
        TokenConfig(
            secret="s" * 32,
            issuer="x",
            access_expires=timedelta(minutes=1),
            refresh_expires=timedelta(days=1),
            algorithm=algorithm,
        )


def test_config_refuses_empty_secret():
    with pytest.raises(ValueError):
        TokenConfig(secret="", issuer="x", access_expires=timedelta(minutes=1),
                    refresh_expires=timedelta(days=1))
