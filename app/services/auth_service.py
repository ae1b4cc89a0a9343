# app/services/auth_service.py
import logging

from app.core.auth import CredentialStore, create_access_token
from app.core.errors import InvalidCredentials
from app.schemas.auth import AdminUserRead, LoginResponse

logger = logging.getLogger(__name__)


class AuthService:
    """Admin login: check credentials, issue a signed token."""

    def __init__(self, credentials: CredentialStore):
        self.credentials = credentials

    def login(self, email: str, password: str) -> LoginResponse:
        identity = self.credentials.verify(email, password)
        if identity is None:
            logger.info("Rejected admin login for %s", email)
            raise InvalidCredentials("Invalid credentials")

        return LoginResponse(
            token=create_access_token(identity),
            user=AdminUserRead(
                name=identity.name,
                email=identity.email,
                role=identity.role,
            ),
        )
