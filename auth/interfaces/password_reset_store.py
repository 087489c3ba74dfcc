"""Password reset quota store interface."""

from __future__ import annotations

from typing import Protocol


class PasswordResetStore(Protocol):
    async def get(self, email: str) -> dict | None:
        ...

    async def put(self, email: str, record: dict) -> None:
        ...
