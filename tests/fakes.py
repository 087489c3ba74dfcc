"""Shared test doubles: a controllable clock and service builders."""

from __future__ import annotations

from auth.config import AuthConfig
from auth.security import TokenService, hash_password
from auth.services.auth_service import AuthService
from auth.services.session_registry import SessionRegistry
from auth.stores.memory_store import (
    MemoryAuditStore,
    MemoryPasswordResetStore,
    MemorySessionStore,
    MemoryUserStore,
)
from retakes.config import RetakeConfig
from retakes.gate import RetakeGate
from retakes.stores import MemoryRetakeStore

TEST_CONFIG = AuthConfig(
    JWT_ACCESS_SECRET="test-access-secret",
    JWT_REFRESH_SECRET="test-refresh-secret",
    ALLOWED_EMAIL_DOMAIN=None,
)

# 2023-11-14T22:13:20Z
START = 1_700_000_000


class FakeClock:
    def __init__(self, start: float = START) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 0, minutes: float = 0, days: float = 0) -> None:
        self.now += seconds + minutes * 60 + days * 86400


class Harness:
    """Wires every store and service around one fake clock."""

    def __init__(self, config: AuthConfig = TEST_CONFIG, clock: FakeClock | None = None) -> None:
        self.config = config
        self.clock = clock or FakeClock()
        self.users = MemoryUserStore()
        self.session_store = MemorySessionStore()
        self.audit = MemoryAuditStore()
        self.tokens = TokenService(config, clock=self.clock)
        self.sessions = SessionRegistry(self.session_store, config, clock=self.clock)
        self.auth = AuthService(
            user_store=self.users,
            session_registry=self.sessions,
            token_service=self.tokens,
            reset_store=MemoryPasswordResetStore(),
            audit_store=self.audit,
            config=config,
            clock=self.clock,
        )
        self.retakes = RetakeGate(
            MemoryRetakeStore(), user_store=self.users, config=RetakeConfig(), clock=self.clock
        )

    async def seed_user(
        self,
        email: str,
        password: str = "pw",
        department: str = "Tax",
        is_admin: bool = False,
    ) -> dict:
        return await self.users.create_user(
            {
                "email": email,
                "hashed_password": hash_password(password),
                "department": department,
                "is_admin": is_admin,
            }
        )
