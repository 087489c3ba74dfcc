"""Auth records shared by the services and stores."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: int
    refresh_expires_at: int


@dataclass(frozen=True)
class SessionRecord:
    """One authenticated client session; a user may hold several."""

    session_id: str
    user_email: str
    access_token: str
    refresh_token: str
    created_at: float
    last_activity: float

    def with_tokens(self, tokens: TokenPair, now: float) -> SessionRecord:
        return replace(
            self,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            last_activity=now,
        )

    def touched(self, now: float) -> SessionRecord:
        return replace(self, last_activity=now)
