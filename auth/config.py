"""Auth configuration management."""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from pathlib import Path

# Load .env file before reading config
try:
    from dotenv import load_dotenv

    # Try loading from project root
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        load_dotenv(override=True)
except ImportError:
    pass


def _parse_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


# Independent development defaults so a missing env var never yields a shared secret.
_DEFAULT_ACCESS_SECRET = secrets.token_urlsafe(32)
_DEFAULT_REFRESH_SECRET = secrets.token_urlsafe(32)


@dataclass(frozen=True)
class AuthConfig:
    """Configuration values for token, session and credential flows."""

    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
    SESSION_INACTIVITY_MINUTES: int = int(os.getenv("SESSION_INACTIVITY_MINUTES", "30"))

    JWT_ALGORITHM: str = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
    JWT_ACCESS_SECRET: str = os.getenv("AUTH_JWT_ACCESS_SECRET", _DEFAULT_ACCESS_SECRET)
    JWT_REFRESH_SECRET: str = os.getenv("AUTH_JWT_REFRESH_SECRET", _DEFAULT_REFRESH_SECRET)

    ALLOWED_EMAIL_DOMAIN: str | None = os.getenv("ALLOWED_EMAIL_DOMAIN") or None
    DEPARTMENTS: tuple[str, ...] = _parse_list(
        os.getenv("DEPARTMENTS"), ("Tax", "IT", "Audit", "Consulting")
    )
    MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))
    MONTHLY_PASSWORD_RESET_LIMIT: int = int(os.getenv("MONTHLY_PASSWORD_RESET_LIMIT", "3"))

    LOGIN_RATE_LIMIT_PER_MINUTE: int = int(os.getenv("LOGIN_RATE_LIMIT_PER_MINUTE", "5"))
    REGISTER_RATE_LIMIT_PER_HOUR: int = int(os.getenv("REGISTER_RATE_LIMIT_PER_HOUR", "10"))

    # Auth store: only "memory" ships with this service
    AUTH_STORE: str = os.getenv("AUTH_STORE", "memory")

    def __post_init__(self) -> None:
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("Access and refresh tokens must be signed with different secrets")

    @property
    def access_token_seconds(self) -> int:
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    @property
    def refresh_token_seconds(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

    @property
    def inactivity_seconds(self) -> int:
        return self.SESSION_INACTIVITY_MINUTES * 60
