"""
Password hashing & session-cookie signing.

- Passwords are hashed with bcrypt directly (passlib is unmaintained
  and broken with bcrypt>=4.1).  Every hash carries its own salt, so
  hashing the same password twice yields two different strings.
- The session cookie carries a signed JWT holding only the session id
  and username.  The signature lets us drop forged or garbled cookies
  before touching the session registry; expiry lives server-side in
  the SessionManager, so the token itself has no `exp`.
"""

import functools
from typing import Any

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings
from app.core.exceptions import PasswordTooLong

# ── Password hashing ────────────────────────────────────────────────

# bcrypt only reads the first 72 bytes; longer input is refused rather
# than silently truncated.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int | None = None) -> str:
    if len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong(MAX_PASSWORD_BYTES)
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed or len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash (corrupt row, legacy value).
        return False


# Compared against when the username does not exist, so a miss costs
# the same bcrypt work as a wrong password.
@functools.lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("not-a-real-password", rounds)


def burn_password_check(plain: str, rounds: int | None = None) -> None:
    verify_password(plain, _dummy_hash(rounds or settings.BCRYPT_ROUNDS))


# ── Session cookie ──────────────────────────────────────────────────


def sign_session_cookie(
    session_id: str,
    username: str,
    *,
    secret_key: str | None = None,
    algorithm: str | None = None,
) -> str:
    claims = {"sid": session_id, "sub": username}
    return jwt.encode(
        claims,
        secret_key or settings.SECRET_KEY,
        algorithm=algorithm or settings.JWT_ALGORITHM,
    )


def read_session_cookie(
    value: str,
    *,
    secret_key: str | None = None,
    algorithm: str | None = None,
) -> dict[str, Any] | None:
    """Return the cookie claims, or None if the signature does not check out."""
    try:
        claims = jwt.decode(
            value,
            secret_key or settings.SECRET_KEY,
            algorithms=[algorithm or settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None
    if not claims.get("sid") or not claims.get("sub"):
        return None
    return claims
