"""Session store interface."""

from __future__ import annotations

from typing import Protocol

from auth.models import SessionRecord


class SessionStore(Protocol):
    async def get(self, session_id: str) -> SessionRecord | None:
        ...

    async def put(self, record: SessionRecord) -> None:
        ...

    async def delete(self, session_id: str) -> None:
        ...

    async def scan_by_owner(self, user_email: str) -> list[SessionRecord]:
        ...
