"""Auth API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status

from auth.dependencies import (
    enforce_login_rate_limit,
    enforce_register_rate_limit,
    get_auth_service,
    get_bearer_token,
    get_current_claims,
    request_context,
    require_admin,
    require_self_or_admin,
)
from auth.schemas import (
    ApiResponse,
    AuthUser,
    ContactAdminRequest,
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    RefreshRequest,
    RegisterRequest,
    SessionStatusResponse,
    TokenResponse,
)
from auth.services.auth_service import AuthService

router = APIRouter()
users_router = APIRouter()
audit_router = APIRouter()


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    _: None = Depends(enforce_register_rate_limit),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    user = await auth_service.register(payload.email, payload.password, payload.department)
    return ApiResponse(
        success=True,
        message="User registered successfully",
        data={"user": AuthUser(**user).model_dump()},
    )


@router.post("/login", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    _: None = Depends(enforce_login_rate_limit),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    result = await auth_service.login(payload.email, payload.password)
    tokens = result["tokens"]
    body = LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=result["expires_in"],
        user=AuthUser(**result["user"]),
    )
    return ApiResponse(success=True, message="Login successful", data=body.model_dump())


@router.post("/refresh", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def refresh(
    payload: RefreshRequest | None = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    result = await auth_service.refresh(payload.refresh_token if payload else None)
    tokens = result["tokens"]
    body = TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=result["expires_in"],
    )
    return ApiResponse(success=True, message="Token refreshed", data=body.model_dump())


@router.post("/logout", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def logout(
    token: str = Depends(get_bearer_token),
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    await auth_service.logout(token, claims)
    return ApiResponse(success=True, message="Logged out successfully", data={})


@router.post("/logout-all", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def logout_all(
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    revoked = await auth_service.logout_all(claims)
    return ApiResponse(
        success=True,
        message="Logged out from all devices successfully",
        data={"revoked_sessions": revoked},
    )


@router.get("/session-status", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def session_status(
    token: str = Depends(get_bearer_token),
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    result = await auth_service.session_status(token, claims)
    return ApiResponse(
        success=True,
        message="Session active",
        data=SessionStatusResponse(**result).model_dump(),
    )


@router.post("/session/heartbeat", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def heartbeat(
    token: str = Depends(get_bearer_token),
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    result = await auth_service.heartbeat(token, claims)
    return ApiResponse(success=True, message="Session extended", data=result)


@router.get("/me", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def me(claims: dict = Depends(get_current_claims)) -> ApiResponse:
    user = AuthUser(
        email=claims["sub"],
        department=claims.get("department"),
        is_admin=bool(claims.get("is_admin")),
    )
    return ApiResponse(success=True, message="User retrieved", data={"user": user.model_dump()})


@router.get("/password-reset/{email}", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def password_reset_eligibility(
    email: str,
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    email = require_self_or_admin(email, claims)
    result = await auth_service.check_reset_eligibility(email)
    return ApiResponse(success=True, message="Reset eligibility retrieved", data=result)


@router.post("/password-reset", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def password_reset(
    payload: PasswordResetRequest,
    request: Request,
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    await auth_service.reset_password(
        claims, payload.email, payload.new_password, context=request_context(request)
    )
    return ApiResponse(success=True, message="Password reset successfully", data={})


@router.post("/password-reset/contact-admin", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def contact_admin(
    request: Request,
    payload: ContactAdminRequest | None = None,
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    result = await auth_service.request_reset_help(
        claims, payload.reason if payload else None, context=request_context(request)
    )
    return ApiResponse(
        success=True,
        message="Admin contact request submitted successfully",
        data=result,
    )


@users_router.post("/{email}/elevate", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def elevate_user(
    email: str,
    request: Request,
    claims: dict = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    result = await auth_service.elevate(claims, email, context=request_context(request))
    return ApiResponse(
        success=True,
        message="User elevated to administrator status successfully",
        data=result,
    )


@audit_router.get("/logs", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def audit_logs(
    limit: int = Query(default=100, ge=1, le=1000),
    claims: dict[str, Any] = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    logs = await auth_service.list_audit_logs(claims, limit)
    return ApiResponse(success=True, message="Audit logs retrieved", data={"logs": logs})
