"""Auth dependency helpers."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.config import AuthConfig
from auth.exceptions import Forbidden, RateLimited, Unauthenticated
from auth.interfaces.rate_limiter import RateLimiter
from auth.security import TokenService
from auth.services.auth_service import AuthService
from auth.services.session_registry import SessionRegistry
from auth.stores.memory_store import (
    MemoryAuditStore,
    MemoryPasswordResetStore,
    MemoryRateLimiter,
    MemorySessionStore,
    MemoryUserStore,
)
from retakes.gate import RetakeGate
from retakes.stores import MemoryRetakeStore

bearer_scheme = HTTPBearer(auto_error=False)

_auth_config = AuthConfig()

if _auth_config.AUTH_STORE != "memory":
    raise ValueError(f"Unsupported AUTH_STORE: {_auth_config.AUTH_STORE}")

_memory_user_store = MemoryUserStore()
_memory_session_store = MemorySessionStore()
_memory_reset_store = MemoryPasswordResetStore()
_memory_audit_store = MemoryAuditStore()
_memory_retake_store = MemoryRetakeStore()
_memory_rate_limiter = MemoryRateLimiter()

# Shared instances: rotation and retake locks only serialize within one object
_auth_service = AuthService(
    user_store=_memory_user_store,
    session_registry=SessionRegistry(_memory_session_store, _auth_config),
    token_service=TokenService(_auth_config),
    reset_store=_memory_reset_store,
    audit_store=_memory_audit_store,
    config=_auth_config,
)
_retake_gate = RetakeGate(_memory_retake_store, user_store=_memory_user_store)


def get_auth_service() -> AuthService:
    return _auth_service


def get_retake_gate() -> RetakeGate:
    return _retake_gate


def get_rate_limiter() -> RateLimiter:
    return _memory_rate_limiter


def request_context(request: Request) -> dict[str, Any]:
    """Client details recorded alongside audited actions."""
    return {
        "ip_address": request.client.host if request.client else "unknown",
        "user_agent": request.headers.get("user-agent", "unknown"),
    }


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if not credentials or not credentials.credentials:
        raise Unauthenticated("Access token required")
    return credentials.credentials


async def get_current_claims(
    request: Request,
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict[str, Any]:
    """Validate the bearer access token and attach its claims to the request."""
    claims = auth_service.authenticate(token)
    request.state.claims = claims
    return claims


async def require_admin(claims: dict[str, Any] = Depends(get_current_claims)) -> dict[str, Any]:
    if not claims.get("is_admin"):
        raise Forbidden("Admin access required")
    return claims


def require_self_or_admin(email: str, claims: dict[str, Any]) -> str:
    """Return the normalized ``email`` if the caller owns it or is an admin."""
    email = email.lower()
    if claims.get("sub") != email and not claims.get("is_admin"):
        raise Forbidden("Not allowed to act on behalf of another user")
    return email


async def enforce_login_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    client_ip = request.client.host if request.client else "unknown"
    key = f"login:{client_ip}"
    allowed = await limiter.allow(key, auth_service.config.LOGIN_RATE_LIMIT_PER_MINUTE, 60)
    if not allowed:
        raise RateLimited("Too many login attempts")


async def enforce_register_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    client_ip = request.client.host if request.client else "unknown"
    key = f"register:{client_ip}"
    allowed = await limiter.allow(key, auth_service.config.REGISTER_RATE_LIMIT_PER_HOUR, 3600)
    if not allowed:
        raise RateLimited("Too many registrations")
