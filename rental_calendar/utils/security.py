"""
Access token handling.

Tokens are issued by the auth service; this service only verifies them.
create_access_token mirrors the issuer's format for tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from ..config import settings

ACCESS_TOKEN_TTL = timedelta(minutes=15)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    claims = dict(data)
    claims["exp"] = datetime.now(timezone.utc) + (expires_delta or ACCESS_TOKEN_TTL)
    claims["type"] = "access"
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Claims of a correctly signed, unexpired token, else None."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[dict]:
    claims = decode_token(token)
    if not claims or claims.get("type") != "access" or not claims.get("sub"):
        return None
    return claims
