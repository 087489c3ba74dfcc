"""Auth request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, EmailStr, Field


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    department: str = Field(min_length=1, max_length=64)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str | None = None


class PasswordResetRequest(BaseModel):
    email: EmailStr
    new_password: str = Field(min_length=1, max_length=128)


class ContactAdminRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class AuthUser(BaseModel):
    email: EmailStr
    department: str | None = None
    is_admin: bool = False


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(TokenResponse):
    user: AuthUser


class SessionStatusResponse(BaseModel):
    valid: bool
    user: AuthUser
    time_until_expiry: int
