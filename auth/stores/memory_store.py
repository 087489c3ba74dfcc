"""In-memory auth stores."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable
from uuid import uuid4

from auth.exceptions import StoreError
from auth.models import SessionRecord


class MemoryUserStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users_by_email: dict[str, dict[str, Any]] = {}

    async def get_by_email(self, email: str) -> dict | None:
        async with self._lock:
            user = self._users_by_email.get(email.lower())
            return dict(user) if user else None

    async def create_user(self, data: dict) -> dict:
        async with self._lock:
            payload = dict(data)
            payload["email"] = payload["email"].lower()
            if payload["email"] in self._users_by_email:
                raise StoreError(f"User {payload['email']} already exists")
            payload["is_admin"] = bool(payload.get("is_admin", False))
            payload["created_at"] = payload.get("created_at", int(time.time()))
            payload["updated_at"] = payload.get("updated_at", payload["created_at"])
            self._users_by_email[payload["email"]] = payload
            return dict(payload)

    async def update_user(self, email: str, updates: dict) -> dict:
        async with self._lock:
            user = self._users_by_email.get(email.lower())
            if not user:
                raise StoreError(f"User {email} not found")
            for key, value in updates.items():
                user[key] = value
            user["updated_at"] = int(time.time())
            return dict(user)


class MemorySessionStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, SessionRecord] = {}
        self._by_owner: dict[str, set[str]] = {}

    async def get(self, session_id: str) -> SessionRecord | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def put(self, record: SessionRecord) -> None:
        async with self._lock:
            self._sessions[record.session_id] = record
            self._by_owner.setdefault(record.user_email, set()).add(record.session_id)

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            record = self._sessions.pop(session_id, None)
            if record:
                owned = self._by_owner.get(record.user_email)
                if owned is not None:
                    owned.discard(session_id)
                    if not owned:
                        self._by_owner.pop(record.user_email, None)

    async def scan_by_owner(self, user_email: str) -> list[SessionRecord]:
        async with self._lock:
            session_ids = self._by_owner.get(user_email, set())
            records = [self._sessions[sid] for sid in session_ids if sid in self._sessions]
            return sorted(records, key=lambda record: record.created_at)


class MemoryPasswordResetStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._records: dict[str, dict[str, Any]] = {}

    async def get(self, email: str) -> dict | None:
        async with self._lock:
            record = self._records.get(email.lower())
            return dict(record) if record else None

    async def put(self, email: str, record: dict) -> None:
        async with self._lock:
            self._records[email.lower()] = dict(record)


class MemoryAuditStore:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entries: list[dict[str, Any]] = []

    async def append(self, entry: dict) -> dict:
        async with self._lock:
            payload = dict(entry)
            payload.setdefault("id", f"audit-{uuid4().hex}")
            self._entries.append(payload)
            return dict(payload)

    async def list_recent(self, limit: int = 100) -> list[dict]:
        async with self._lock:
            return [dict(entry) for entry in reversed(self._entries[-limit:])]


class MemoryRateLimiter:
    """Sliding-window hit counter; keys are dropped once their window has emptied."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = asyncio.Lock()
        self._clock = clock
        self._hits: dict[str, tuple[int, list[float]]] = {}

    def __len__(self) -> int:
        return len(self._hits)

    async def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        now = self._clock()
        async with self._lock:
            self._prune(now)
            _, hits = self._hits.get(key, (window_seconds, []))
            if len(hits) >= limit:
                return False
            hits.append(now)
            self._hits[key] = (window_seconds, hits)
            return True

    def _prune(self, now: float) -> None:
        for key in list(self._hits):
            window, hits = self._hits[key]
            fresh = [stamp for stamp in hits if (now - stamp) < window]
            if fresh:
                self._hits[key] = (window, fresh)
            else:
                del self._hits[key]
