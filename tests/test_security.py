"""Unit tests for utils/security.py -- argon2 password hashing.

Covers:
- hash/verify round trip and wrong-password rejection
- verify() returns False (never raises) for corrupt or unencodable input
- salted: the same password hashes differently each time
- needs_rehash() flags hashes made with a lower cost factor
"""

from utils.security import PasswordHasher


def test_verify_accepts_the_hashed_password(hasher):
    h = hasher.hash("password123")
    assert hasher.verify("password123", h) is True


def test_verify_rejects_a_different_password(hasher):
    h = hasher.hash("password123")
    assert hasher.verify("password124", h) is False


def test_hash_is_salted_and_self_describing(hasher):
    a = hasher.hash("password123")
    b = hasher.hash("password123")
    assert a != b
    assert a.startswith("$argon2id$")
    assert "t=1" in a


def test_verify_never_raises_on_malformed_hash(hasher):
    assert hasher.verify("password123", "not-a-hash") is False
    assert hasher.verify("password123", "") is False
    assert hasher.verify("password123", "$argon2id$v=19$m=8,t=1,p=1$garbage") is False


def test_unicode_passwords_round_trip(hasher):
    h = hasher.hash("pässwörd-密码-🔑")
    assert hasher.verify("pässwörd-密码-🔑", h) is True


def test_raising_cost_keeps_old_hashes_valid():
    old = PasswordHasher(time_cost=1, memory_cost=8)
    new = PasswordHasher(time_cost=2, memory_cost=8)

    legacy_hash = old.hash("password123")

    assert new.verify("password123", legacy_hash) is True
    assert new.needs_rehash(legacy_hash) is True
    assert new.needs_rehash(new.hash("password123")) is False


def test_needs_rehash_is_false_for_garbage(hasher):
    assert hasher.needs_rehash("not-a-hash") is False


def test_verify_never_raises_on_unencodable_input(hasher):
    h = hasher.hash("password123")
    # argon2 encodes hashes as ASCII and passwords as UTF-8
    assert hasher.verify("password123", "$argon2id$v=19$m=8,t=1,p=1$é") is False
    assert hasher.verify("\ud800password", h) is False
    assert hasher.verify("\ud800password", "$argon2id$v=19$m=8,t=1,p=1$é") is False


def test_needs_rehash_is_false_for_non_ascii_hash(hasher):
    assert hasher.needs_rehash("$argon2id$v=19$m=8,t=1,p=1$é") is False
