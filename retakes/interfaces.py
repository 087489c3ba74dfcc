"""Retake store interface."""

from __future__ import annotations

from typing import Protocol

from retakes.models import RetakeRecord


class RetakeStore(Protocol):
    async def get(self, user_email: str, quiz_id: str) -> RetakeRecord | None:
        ...

    async def put(self, record: RetakeRecord) -> None:
        ...

    async def delete(self, user_email: str, quiz_id: str) -> None:
        ...

    async def scan_by_owner(self, user_email: str) -> list[RetakeRecord]:
        ...
