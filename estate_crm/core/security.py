"""
core/security.py
----------------
Password hashing and JWT token utilities.

Design decisions:
  - bcrypt via passlib; the work factor comes from settings (12 in
    production, lowered in the test suite).
  - JWT payload carries userId, username, companyAlias and role. companyId
    is deliberately NOT in the token: it is looked up fresh from the store
    on every request.
  - Expired tokens raise TokenExpired, everything else InvalidToken, so a
    client can tell "refresh silently" apart from "log in again".
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from estate_crm.core.config import settings
from estate_crm.core.errors import InvalidToken, TokenExpired

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)

REQUIRED_CLAIMS = ("userId", "username", "companyAlias", "role")


# ── Password Utilities ────────────────────────────────────────────────────────

def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the plain-text password."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Constant-time comparison of plain password against stored hash."""
    if not plain or not hashed:
        return False
    return pwd_context.verify(plain, hashed)


# ── JWT Utilities ─────────────────────────────────────────────────────────────

def create_access_token(
    user_id: str,
    username: str,
    company_alias: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a signed session token.

    Args:
        user_id:        User UUID.
        username:       Login name (unique within the company only).
        company_alias:  Tenant alias the user belongs to.
        role:           One of the Role labels.
        expires_delta:  Optional custom expiry; defaults to settings value.
    """
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload: Dict[str, Any] = {
        "userId": user_id,
        "username": username,
        "companyAlias": company_alias,
        "role": role,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a session token.

    Raises:
        TokenExpired: the signature is fine but ``exp`` is in the past.
        InvalidToken: bad signature, malformed token or missing claims.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired("Token expired") from exc
    except JWTError as exc:
        raise InvalidToken("Invalid token") from exc

    if any(not payload.get(claim) for claim in REQUIRED_CLAIMS):
        raise InvalidToken("Invalid token")
    return payload
