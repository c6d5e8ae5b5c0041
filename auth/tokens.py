"""
auth/tokens.py -- JWT issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. issue_token()/verify_token() are pure functions
       of (claims, secret, ttl) so they can be exercised without settings.
       create_access_token()/decode_access_token() bind them to SECRET_KEY and
       the {"user": {"id": ...}} claim shape every route relies on.
       Verification raises TokenExpired or TokenInvalid; the identity resolver
       turns both into a 401.

  Passwords: bcrypt directly (no passlib wrapper). The cost factor comes from
       Settings.bcrypt_rounds (default 10). The _DUMMY_HASH constant enables
       timing equalization in authenticate_user() so response time does not
       reveal whether an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(), which validates it at
       startup (auto-generated in debug mode, required otherwise, >= 32 chars).

Layer rule: no imports from api/ or social/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("devconnect.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenInvalid(TokenError):
    """Signature mismatch, malformed structure, or missing identity claim."""


class TokenExpired(TokenError):
    """Signature is valid but the exp claim is in the past."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    A fresh salt is generated per call, so hashing the same password twice
    never yields the same string. bcrypt raises ValueError for input over 72
    bytes of UTF-8; the request models reject such passwords with a 400
    before they get here.
    """
    salt = bcrypt.gensalt(rounds=rounds or _settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw re-derives with the salt embedded in `hashed` and compares
    in constant time. A malformed hash returns False instead of raising.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("devconnect_timing_dummy")


# ---------------------------------------------------------------------------
# JWT issue / verify
# ---------------------------------------------------------------------------


def issue_token(claims: dict[str, Any], secret: str, ttl: int) -> str:
    """Sign claims into an HS256 JWT that expires ttl seconds from now.

    An "exp" key in claims is overwritten.
    """
    payload = dict(claims)
    payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=ttl)
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def verify_token(token: str, secret: str) -> dict[str, Any]:
    """Verify a JWT and return its claims without the exp claim.

    Raises TokenExpired when exp has passed and TokenInvalid on any other
    failure (bad signature, malformed token, wrong algorithm).
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpired(str(e)) from e
    except JWTError as e:
        raise TokenInvalid(str(e)) from e
    payload.pop("exp", None)
    return payload


def create_access_token(user_id: str, expire_seconds: int = 0) -> str:
    """Issue an access token for user_id.

    Args:
        user_id:        Opaque user id stored in the DB.
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    return issue_token({"user": {"id": user_id}}, _settings.secret_key, duration)


def decode_access_token(token: str) -> str:
    """Verify an access token and return the user id it carries.

    Raises TokenExpired / TokenInvalid. A correctly signed token without a
    user.id claim is TokenInvalid.
    """
    claims = verify_token(token, _settings.secret_key)
    user = claims.get("user")
    if not isinstance(user, dict) or not isinstance(user.get("id"), str):
        raise TokenInvalid("token carries no user id")
    return user["id"]


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the email is registered:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
