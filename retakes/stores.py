"""In-memory retake store."""

from __future__ import annotations

import asyncio

from retakes.models import RetakeRecord


class MemoryRetakeStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._records: dict[tuple[str, str], RetakeRecord] = {}

    async def get(self, user_email: str, quiz_id: str) -> RetakeRecord | None:
        async with self._lock:
            return self._records.get((user_email, quiz_id))

    async def put(self, record: RetakeRecord) -> None:
        async with self._lock:
            self._records[record.key] = record

    async def delete(self, user_email: str, quiz_id: str) -> None:
        async with self._lock:
            self._records.pop((user_email, quiz_id), None)

    async def scan_by_owner(self, user_email: str) -> list[RetakeRecord]:
        async with self._lock:
            return [record for (owner, _), record in self._records.items() if owner == user_email]
