"""Core auth service: login, request validation, refresh, logout and elevation."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from auth.config import AuthConfig
from auth.exceptions import (
    AlreadyAdmin,
    Conflict,
    Forbidden,
    InvalidCredentials,
    InvalidRefresh,
    InvalidRequest,
    NotFound,
    ResetLimitExceeded,
    SessionExpired,
    Unauthenticated,
)
from auth.interfaces.audit_store import AuditStore
from auth.interfaces.password_reset_store import PasswordResetStore
from auth.interfaces.user_store import UserStore
from auth.security import Clock, TokenService, hash_password, verify_password_or_placeholder
from auth.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_PASSWORD_BYTES = 72


def _public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {
        "email": user["email"],
        "department": user.get("department"),
        "is_admin": bool(user.get("is_admin", False)),
    }


def _month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _next_month_start(moment: datetime) -> datetime:
    start = _month_start(moment)
    if start.month == 12:
        return start.replace(year=start.year + 1, month=1)
    return start.replace(month=start.month + 1)


class AuthService:
    def __init__(
        self,
        user_store: UserStore,
        session_registry: SessionRegistry,
        token_service: TokenService,
        reset_store: PasswordResetStore,
        audit_store: AuditStore,
        config: AuthConfig | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._users = user_store
        self._sessions = session_registry
        self._tokens = token_service
        self._resets = reset_store
        self._audit = audit_store
        self._config = config or AuthConfig()
        self._clock = clock
        # Serializes check-then-write mutations of credential records
        self._credentials_lock = asyncio.Lock()

    @property
    def config(self) -> AuthConfig:
        return self._config

    async def get_user(self, email: str) -> dict[str, Any] | None:
        return await self._users.get_by_email(email)

    async def register(self, email: str, password: str, department: str) -> dict[str, Any]:
        if not email or not password or not department:
            raise InvalidRequest("Email, password, and department are required")

        email = email.strip().lower()
        if not _EMAIL_PATTERN.match(email):
            raise InvalidRequest("Invalid email format")

        domain = self._config.ALLOWED_EMAIL_DOMAIN
        if domain and email.split("@", 1)[1] != domain.lower():
            raise InvalidRequest(f"Only @{domain} email addresses are allowed")

        if department not in self._config.DEPARTMENTS:
            raise InvalidRequest(f"Unknown department: {department}")

        self._check_password(password)

        async with self._credentials_lock:
            if await self._users.get_by_email(email):
                raise Conflict("User already exists")
            user = await self._users.create_user(
                {
                    "email": email,
                    "hashed_password": hash_password(password),
                    "department": department,
                    "is_admin": False,
                }
            )

        logger.info("Registered user %s (%s)", email, department)
        return _public_user(user)

    async def ensure_admin(self, email: str, password: str, department: str) -> bool:
        """Create an admin account if ``email`` is not registered yet."""
        async with self._credentials_lock:
            if await self._users.get_by_email(email):
                return False
            await self._users.create_user(
                {
                    "email": email,
                    "hashed_password": hash_password(password),
                    "department": department,
                    "is_admin": True,
                }
            )
        logger.info("Bootstrapped admin account %s", email)
        return True

    async def login(self, email: str, password: str) -> dict[str, Any]:
        if not email or not password:
            raise InvalidRequest("Email and password are required")

        user = await self._users.get_by_email(email)
        hashed = user.get("hashed_password") if user else None
        # Unknown user and wrong password must be indistinguishable to the caller
        if not verify_password_or_placeholder(password, hashed) or not user:
            logger.warning("Failed login attempt for %s", email)
            raise InvalidCredentials("Invalid email or password")

        tokens = self._tokens.issue(
            user["email"],
            {"department": user.get("department"), "is_admin": user.get("is_admin", False)},
        )
        session_id = await self._sessions.register(user["email"], tokens)
        logger.info("User %s logged in (session %s)", user["email"], session_id)

        return {
            "user": _public_user(user),
            "tokens": tokens,
            "session_id": session_id,
            "expires_in": self._config.access_token_seconds,
        }

    def authenticate(self, access_token: str | None) -> dict[str, Any]:
        """Validate a bearer access token and return its claims.

        Stateless: does not consult or touch the session registry.
        """
        if not access_token:
            raise Unauthenticated("Access token required")
        return self._tokens.verify_access(access_token)

    async def refresh(self, refresh_token: str | None) -> dict[str, Any]:
        if not refresh_token:
            raise Unauthenticated("Refresh token required")

        payload = self._tokens.verify_refresh(refresh_token)
        identity = payload["sub"]

        session = await self._sessions.find_by_refresh_token(identity, refresh_token)
        if not session:
            raise InvalidRefresh("Invalid refresh token")

        if not await self._sessions.is_alive(session.session_id):
            await self._sessions.revoke(session.session_id)
            raise SessionExpired("Session expired due to inactivity")

        user = await self._users.get_by_email(identity)
        if not user:
            await self._sessions.revoke(session.session_id)
            raise InvalidRefresh("Invalid refresh token")

        tokens = self._tokens.issue(
            identity,
            {"department": user.get("department"), "is_admin": user.get("is_admin", False)},
        )
        rotated = await self._sessions.rotate(session.session_id, refresh_token, tokens)
        if rotated is None:
            logger.warning("Refresh token replay rejected for %s", identity)
            raise InvalidRefresh("Invalid refresh token")

        logger.info("Rotated tokens for session %s", session.session_id)
        return {
            "tokens": tokens,
            "session_id": session.session_id,
            "expires_in": self._config.access_token_seconds,
        }

    async def logout(self, access_token: str, claims: dict[str, Any]) -> None:
        session = await self._sessions.find_by_access_token(claims["sub"], access_token)
        if session:
            await self._sessions.revoke(session.session_id)
            logger.info("User %s logged out of session %s", claims["sub"], session.session_id)

    async def logout_all(self, claims: dict[str, Any]) -> int:
        revoked = await self._sessions.revoke_all(claims["sub"])
        logger.info("User %s logged out of %d session(s)", claims["sub"], revoked)
        return revoked

    async def session_status(self, access_token: str, claims: dict[str, Any]) -> dict[str, Any]:
        """Report whether the caller's session is still inside its inactivity window.

        Polling this does not extend the session.
        """
        identity = claims["sub"]
        if not await self.get_user(identity):
            raise Unauthenticated("User not found")

        session = await self._sessions.find_by_access_token(identity, access_token)
        if not session:
            raise Unauthenticated("Session not found")

        if not await self._sessions.is_alive(session.session_id):
            raise SessionExpired("Session expired due to inactivity")

        return {
            "valid": True,
            "user": {
                "email": identity,
                "department": claims.get("department"),
                "is_admin": bool(claims.get("is_admin", False)),
            },
            "time_until_expiry": int(self._sessions.time_until_expiry(session)),
        }

    async def heartbeat(self, access_token: str, claims: dict[str, Any]) -> dict[str, Any]:
        session = await self._sessions.find_by_access_token(claims["sub"], access_token)
        if not session:
            raise Unauthenticated("Session not found")
        if not await self._sessions.is_alive(session.session_id):
            raise SessionExpired("Session expired due to inactivity")
        await self._sessions.touch(session.session_id)
        return {"time_until_expiry": self._config.inactivity_seconds}

    async def elevate(
        self,
        caller_claims: dict[str, Any],
        target_email: str,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not caller_claims.get("is_admin"):
            raise Forbidden("Only administrators can elevate users")

        async with self._credentials_lock:
            target = await self._users.get_by_email(target_email)
            if not target:
                raise NotFound("User not found")
            if target.get("is_admin"):
                raise AlreadyAdmin("User is already an administrator")
            updated = await self._users.update_user(target["email"], {"is_admin": True})

        await self._record_audit(
            caller_claims["sub"],
            "elevate_user",
            {"elevated_user": updated["email"], "previous_role": "user", "new_role": "admin"},
            context,
        )
        logger.info("User %s elevated %s to admin", caller_claims["sub"], updated["email"])
        return {"email": updated["email"], "is_admin": True}

    async def check_reset_eligibility(self, email: str) -> dict[str, Any]:
        record = self._current_reset_record(await self._resets.get(email))
        limit = self._config.MONTHLY_PASSWORD_RESET_LIMIT
        monthly_count = int(record["monthly_count"])
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        return {
            "can_reset": monthly_count < limit,
            "remaining_resets": max(0, limit - monthly_count),
            "monthly_count": monthly_count,
            "next_reset_date": _next_month_start(now).isoformat(),
        }

    async def reset_password(
        self,
        caller_claims: dict[str, Any],
        email: str,
        new_password: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        email = email.lower()
        caller = caller_claims["sub"]
        if caller != email and not caller_claims.get("is_admin"):
            raise Forbidden("Cannot reset another user's password")

        self._check_password(new_password)

        async with self._credentials_lock:
            user = await self._users.get_by_email(email)
            if not user:
                raise NotFound("User not found")

            record = self._current_reset_record(await self._resets.get(email))
            if int(record["monthly_count"]) >= self._config.MONTHLY_PASSWORD_RESET_LIMIT:
                raise ResetLimitExceeded("Monthly reset limit exceeded")

            await self._users.update_user(email, {"hashed_password": hash_password(new_password)})
            record["reset_count"] = int(record["reset_count"]) + 1
            record["monthly_count"] = int(record["monthly_count"]) + 1
            record["last_reset"] = self._clock()
            await self._resets.put(email, record)

        if caller != email:
            await self._record_audit(caller, "reset_password", {"target_user": email}, context)
        logger.info("Password reset for %s by %s", email, caller)

    async def list_audit_logs(self, caller_claims: dict[str, Any], limit: int = 100) -> list[dict]:
        if not caller_claims.get("is_admin"):
            raise Forbidden("Admin access required")
        if limit <= 0:
            return []
        return await self._audit.list_recent(limit)

    async def request_reset_help(
        self,
        caller_claims: dict[str, Any],
        reason: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """File a pending request for an administrator to reset the caller's password.

        Requests land in the audit log so admins see them next to the resets
        they act on.
        """
        request_id = f"reset-request-{uuid4().hex}"
        await self._record_audit(
            caller_claims["sub"],
            "reset_help_request",
            {
                "request_id": request_id,
                "reason": reason or "Monthly password reset limit exceeded",
                "status": "pending",
            },
            context,
        )
        logger.info("User %s asked an admin for a password reset", caller_claims["sub"])
        return {"request_id": request_id}

    def _check_password(self, password: str | None) -> None:
        if not password or len(password) < self._config.MIN_PASSWORD_LENGTH:
            raise InvalidRequest(
                f"Password must be at least {self._config.MIN_PASSWORD_LENGTH} characters"
            )
        # bcrypt only accepts up to 72 bytes of input
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidRequest(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

    def _current_reset_record(self, record: dict[str, Any] | None) -> dict[str, Any]:
        """Return the quota record for the current calendar month (UTC)."""
        now = self._clock()
        if record is None:
            return {"reset_count": 0, "monthly_count": 0, "period_start": now, "last_reset": None}

        period = datetime.fromtimestamp(float(record["period_start"]), tz=timezone.utc)
        current = datetime.fromtimestamp(now, tz=timezone.utc)
        if (period.year, period.month) != (current.year, current.month):
            record = dict(record)
            record["monthly_count"] = 0
            record["period_start"] = now
        return record

    async def _record_audit(
        self,
        actor: str,
        action: str,
        details: dict[str, Any],
        context: dict[str, Any] | None,
    ) -> None:
        context = context or {}
        await self._audit.append(
            {
                "actor": actor,
                "action": action,
                "details": details,
                "ip_address": context.get("ip_address", "unknown"),
                "user_agent": context.get("user_agent", "unknown"),
                "timestamp": datetime.fromtimestamp(self._clock(), tz=timezone.utc).isoformat(),
            }
        )
