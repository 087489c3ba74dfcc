"""Audit log store interface."""

from __future__ import annotations

from typing import Protocol


class AuditStore(Protocol):
    async def append(self, entry: dict) -> dict:
        ...

    async def list_recent(self, limit: int = 100) -> list[dict]:
        ...
