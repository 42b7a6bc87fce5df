"""
Tests for hashing and token helpers
"""
import pytest

from app.core.security import (
    create_access_token,
    decode_token,
    hash_if_needed,
    hash_password,
    is_hashed,
    verify_password,
)


def test_hash_password_verifies():
    hashed = hash_password("secret123")

    assert is_hashed(hashed)
    assert verify_password("secret123", hashed)
    assert not verify_password("other", hashed)


def test_hash_if_needed_is_idempotent():
    once = hash_if_needed("secret123")
    twice = hash_if_needed(once)

    assert twice == once
    assert verify_password("secret123", twice)


@pytest.mark.parametrize("value", ["", "   "])
def test_hash_if_needed_leaves_blank_values(value):
    assert hash_if_needed(value) == value


def test_verify_password_with_garbage_hash_is_false():
    assert verify_password("secret123", "not-a-hash") is False


def test_token_round_trip_keeps_subject():
    token = create_access_token({"sub": "ana@correo.com"})

    assert decode_token(token)["sub"] == "ana@correo.com"


def test_expired_token_rejected():
    token = create_access_token({"sub": "ana@correo.com"}, expires_minutes=-1)

    with pytest.raises(ValueError):
        decode_token(token)


def test_tampered_token_rejected():
    token = create_access_token({"sub": "ana@correo.com"})

    with pytest.raises(ValueError):
        decode_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))
