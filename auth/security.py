"""Security utilities for auth."""

from __future__ import annotations

import secrets
import time
from functools import lru_cache
from typing import Any, Callable
from uuid import uuid4

import bcrypt
from jose import JWTError, jwt

from auth.config import AuthConfig
from auth.exceptions import InvalidRefresh, TokenExpired, Unauthenticated
from auth.models import TokenPair

Clock = Callable[[], float]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        password_bytes = password.encode("utf-8")
        hashed_bytes = hashed_password.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        return False


@lru_cache(maxsize=1)
def _placeholder_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


def verify_password_or_placeholder(password: str, hashed_password: str | None) -> bool:
    """Run a bcrypt comparison even when no stored hash exists.

    Keeps the unknown-user path as slow as the wrong-password path.
    """
    if not hashed_password:
        verify_password(password, _placeholder_hash())
        return False
    return verify_password(password, hashed_password)


class TokenService:
    """Issues and verifies the access/refresh JWT pair.

    Holds no mutable state. Expiry is evaluated against the injected clock
    rather than the library's wall clock so lifetimes can be simulated.
    """

    def __init__(self, config: AuthConfig | None = None, clock: Clock = time.time) -> None:
        self._config = config or AuthConfig()
        self._clock = clock

    def issue(self, identity: str, claims: dict[str, Any]) -> TokenPair:
        now = int(self._clock())
        access_exp = now + self._config.access_token_seconds
        refresh_exp = now + self._config.refresh_token_seconds
        department = claims.get("department")

        access_payload: dict[str, Any] = {
            "sub": identity,
            "department": department,
            "is_admin": bool(claims.get("is_admin", False)),
            "type": "access",
            "iat": now,
            "exp": access_exp,
            "jti": uuid4().hex,
        }
        refresh_payload: dict[str, Any] = {
            "sub": identity,
            "department": department,
            "type": "refresh",
            "iat": now,
            "exp": refresh_exp,
            "jti": uuid4().hex,
        }
        access_token = jwt.encode(
            access_payload, self._config.JWT_ACCESS_SECRET, algorithm=self._config.JWT_ALGORITHM
        )
        refresh_token = jwt.encode(
            refresh_payload, self._config.JWT_REFRESH_SECRET, algorithm=self._config.JWT_ALGORITHM
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )

    def verify_access(self, token: str) -> dict[str, Any]:
        payload = self._decode(token, self._config.JWT_ACCESS_SECRET)
        if payload is None or payload.get("type") != "access" or not payload.get("sub"):
            raise Unauthenticated("Invalid token", status_code=403)
        if self._is_expired(payload):
            raise TokenExpired("Access token expired")
        return payload

    def verify_refresh(self, token: str) -> dict[str, Any]:
        payload = self._decode(token, self._config.JWT_REFRESH_SECRET)
        if payload is None or payload.get("type") != "refresh" or not payload.get("sub"):
            raise InvalidRefresh("Invalid refresh token")
        if self._is_expired(payload):
            raise InvalidRefresh("Invalid refresh token")
        return payload

    def _decode(self, token: str, secret: str) -> dict[str, Any] | None:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self._config.JWT_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

    def _is_expired(self, payload: dict[str, Any]) -> bool:
        try:
            expires_at = int(payload["exp"])
        except (KeyError, TypeError, ValueError):
            return True
        return self._clock() > expires_at
