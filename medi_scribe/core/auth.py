"""Doctor credentials: bcrypt password hashes and signed session tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Response
from jose import JWTError, jwt
from passlib.context import CryptContext

from medi_scribe.config import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_COOKIE = "medi_access"
ACCESS_TOKEN_TYPE = "access"


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(doctor_id: str) -> str:
    """Sign a session token whose subject is the doctor's id."""
    settings = get_settings()
    issued = datetime.now(timezone.utc)
    claims = {
        "sub": doctor_id,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Claims of a correctly signed, unexpired token; ``None`` otherwise."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def access_token_subject(token: Optional[str]) -> Optional[str]:
    """Doctor id carried by a valid access token."""
    if not token:
        return None
    claims = decode_token(token)
    if not claims or claims.get("type") != ACCESS_TOKEN_TYPE:
        return None
    return claims.get("sub") or None


def set_auth_cookie(response: Response, access: str) -> None:
    settings = get_settings()
    response.set_cookie(
        ACCESS_COOKIE,
        access,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE, path="/")
