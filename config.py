"""
Configuration management for the application.
"""

import os
from pathlib import Path


# Load .env file if it exists
try:
    from dotenv import load_dotenv

    # Load .env from project root
    env_path = Path(__file__).parent / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        # Try loading from current directory as fallback
        load_dotenv(override=True)
except ImportError:
    # python-dotenv not installed, skip loading .env
    pass


class Config:
    """Application configuration."""

    # API configuration
    CORS_ORIGINS: list[str] = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Optional admin account created at startup when missing
    BOOTSTRAP_ADMIN_EMAIL: str | None = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    BOOTSTRAP_ADMIN_PASSWORD: str | None = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
    BOOTSTRAP_ADMIN_DEPARTMENT: str = os.getenv("BOOTSTRAP_ADMIN_DEPARTMENT", "IT")

    @classmethod
    def bootstrap_admin_enabled(cls) -> bool:
        return bool(cls.BOOTSTRAP_ADMIN_EMAIL and cls.BOOTSTRAP_ADMIN_PASSWORD)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration."""
        if bool(cls.BOOTSTRAP_ADMIN_EMAIL) != bool(cls.BOOTSTRAP_ADMIN_PASSWORD):
            raise ValueError(
                "BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD must be set together"
            )
