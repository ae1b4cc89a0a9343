# app/schemas/auth.py
from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AdminUserRead(BaseModel):
    name: str
    email: str
    role: str


class LoginResponse(BaseModel):
    """Body returned by POST /auth/login."""

    token: str
    user: AdminUserRead
