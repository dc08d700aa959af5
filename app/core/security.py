"""Security utilities for admin credentials, JWT and opaque identifiers."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import Settings
from app.shared.exceptions import UnauthenticatedException

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ADMIN_ROLE = "admin"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="admin/auth/login", auto_error=False)


def verify_admin_credentials(settings: Settings, username: str, password: str) -> bool:
    """Check credentials against the configured administrator account."""
    username_ok = secrets.compare_digest(username.encode(), settings.admin_username.encode())
    if settings.admin_password_hash:
        password_ok = pwd_context.verify(password, settings.admin_password_hash)
    else:
        password_ok = secrets.compare_digest(password.encode(), settings.admin_password.encode())
    return username_ok and password_ok


def create_access_token(settings: Settings, subject: str, **claims: Any) -> str:
    """Create signed access token."""
    payload: dict[str, Any] = {
        "sub": subject,
        "type": "access",
        "exp": datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes),
    }
    payload.update(claims)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(settings: Settings, token: str) -> dict[str, Any]:
    """Decode and validate JWT token."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise UnauthenticatedException("Invalid token") from exc


def generate_opaque_id(num_bytes: int = 24) -> str:
    """URL-safe random identifier with ``num_bytes`` of entropy."""
    return secrets.token_urlsafe(num_bytes)
