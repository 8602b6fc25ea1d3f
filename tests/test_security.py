import pytest

from app.core.exceptions import PasswordTooLong
from app.core.security import (
    MAX_PASSWORD_BYTES,
    hash_password,
    read_session_cookie,
    sign_session_cookie,
    verify_password,
)


def test_hash_is_salted_per_call():
    first = hash_password("pw123", rounds=4)
    second = hash_password("pw123", rounds=4)
    assert first != second
    assert "pw123" not in first


def test_verify_matches_only_the_original_password():
    hashed = hash_password("pw123", rounds=4)
    assert verify_password("pw123", hashed)
    assert not verify_password("pw124", hashed)
    assert not verify_password("", hashed)


def test_verify_rejects_empty_and_malformed_hashes():
    assert not verify_password("pw123", "")
    assert not verify_password("pw123", "pw123")


def test_session_cookie_roundtrip():
    value = sign_session_cookie("abc", "alice", secret_key="k1", algorithm="HS256")
    claims = read_session_cookie(value, secret_key="k1", algorithm="HS256")
    assert claims["sid"] == "abc"
    assert claims["sub"] == "alice"


def test_session_cookie_signed_with_another_key_is_rejected():
    value = sign_session_cookie("abc", "alice", secret_key="k1", algorithm="HS256")
    assert read_session_cookie(value, secret_key="k2", algorithm="HS256") is None
    assert read_session_cookie("garbage", secret_key="k1", algorithm="HS256") is None


def test_passwords_over_bcrypt_limit_are_refused():
    with pytest.raises(PasswordTooLong):
        hash_password("x" * (MAX_PASSWORD_BYTES + 1), rounds=4)
    # Counted in bytes: 37 two-byte characters are over the limit.
    with pytest.raises(PasswordTooLong):
        hash_password("é" * 37, rounds=4)
    at_limit = "x" * MAX_PASSWORD_BYTES
    assert verify_password(at_limit, hash_password(at_limit, rounds=4))


def test_longer_password_sharing_the_first_72_bytes_does_not_verify():
    hashed = hash_password("x" * MAX_PASSWORD_BYTES, rounds=4)
    assert not verify_password("x" * MAX_PASSWORD_BYTES + "A", hashed)
    assert not verify_password("x" * MAX_PASSWORD_BYTES + "anything else", hashed)
