# app/routers/auth.py
from fastapi import APIRouter, Depends

from app.core.auth import CredentialStore, get_credential_store
from app.schemas.auth import LoginRequest, LoginResponse
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    credentials: CredentialStore = Depends(get_credential_store),
):
    """
    Exchange the admin email/password for a bearer token.

    Returns 400 when the credentials do not match.
    """
    return AuthService(credentials).login(payload.email, payload.password)
