# app/core/auth.py
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from app.core.config import get_settings
from app.core.errors import Unauthorized

ADMIN_ROLE = "admin"

# HTTP Bearer scheme:
# - auto_error=False => a missing Authorization header does not raise a 403;
#   require_admin answers 401 in our own error format instead.
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminIdentity:
    id: str
    email: str
    name: str
    role: str = ADMIN_ROLE


class CredentialStore(Protocol):
    """Resolves login credentials to an admin identity."""

    def verify(self, email: str, password: str) -> AdminIdentity | None:
        ...


class StaticCredentialStore:
    """
    Credential store holding exactly one admin account, read from settings
    (ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME).
    """

    def __init__(self, email: str, password: str, name: str = "Admin User"):
        self._identity = AdminIdentity(id="admin", email=email, name=name)
        self._password = password

    def verify(self, email: str, password: str) -> AdminIdentity | None:
        email_ok = hmac.compare_digest(
            email.strip().lower().encode(),
            self._identity.email.strip().lower().encode(),
        )
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if email_ok and password_ok:
            return self._identity
        return None


def get_credential_store() -> CredentialStore:
    """FastAPI dependency; override it to plug in another credential backend."""
    settings = get_settings()
    return StaticCredentialStore(
        email=settings.ADMIN_EMAIL,
        password=settings.ADMIN_PASSWORD,
        name=settings.ADMIN_NAME,
    )


def create_access_token(identity: AdminIdentity, expires_in: timedelta | None = None) -> str:
    """
    Sign a JWT for the given admin.

    Claims: sub, email, role, exp (JWT_EXPIRE_HOURS by default).
    """
    settings = get_settings()
    expires_at = datetime.now(timezone.utc) + (
        expires_in or timedelta(hours=settings.JWT_EXPIRE_HOURS)
    )
    claims = {
        "sub": identity.id,
        "email": identity.email,
        "name": identity.name,
        "role": identity.role,
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an admin access token.

    Verification:
      - signature (JWT_SECRET / JWT_ALG)
      - expiration time (exp)

    Raises:
        Unauthorized: if token is invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AdminIdentity:
    """
    Enforce an authenticated admin on mutating routes.

    Returns:
        The AdminIdentity carried by the token.

    Raises:
        Unauthorized: missing token, bad signature, expired, or not an admin.
    """
    if credentials is None:
        raise Unauthorized("No token, unauthorized")

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    email = payload.get("email")
    if not sub or not email or payload.get("role") != ADMIN_ROLE:
        raise Unauthorized("Admin access required")

    return AdminIdentity(
        id=sub,
        email=email,
        name=payload.get("name") or email,
        role=ADMIN_ROLE,
    )
