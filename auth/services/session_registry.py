"""Server-side session tracking with inactivity expiry."""

from __future__ import annotations

import asyncio
import logging
import time
from uuid import uuid4

from auth.config import AuthConfig
from auth.interfaces.session_store import SessionStore
from auth.models import SessionRecord, TokenPair
from auth.security import Clock

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Tracks one record per login and evicts idle sessions on read.

    Lookups never raise for a missing session; they resolve to ``None`` or
    ``False`` and leave the authorization decision to the caller. Every
    read-modify-write runs under a single registry lock so token rotation
    is atomic across concurrent refresh calls.
    """

    def __init__(
        self,
        store: SessionStore,
        config: AuthConfig | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._store = store
        self._config = config or AuthConfig()
        self._clock = clock
        self._lock = asyncio.Lock()

    async def register(self, identity: str, tokens: TokenPair) -> str:
        now = self._clock()
        record = SessionRecord(
            session_id=uuid4().hex,
            user_email=identity,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            created_at=now,
            last_activity=now,
        )
        async with self._lock:
            await self._store.put(record)
        return record.session_id

    async def touch(self, session_id: str) -> None:
        async with self._lock:
            record = await self._store.get(session_id)
            if record:
                await self._store.put(record.touched(self._clock()))

    async def is_alive(self, session_id: str) -> bool:
        async with self._lock:
            record = await self._store.get(session_id)
            if not record:
                return False
            if self._idle_for(record) > self._config.inactivity_seconds:
                await self._store.delete(session_id)
                logger.info("Evicted idle session %s for %s", session_id, record.user_email)
                return False
            return True

    async def revoke(self, session_id: str) -> None:
        async with self._lock:
            await self._store.delete(session_id)

    async def revoke_all(self, identity: str) -> int:
        async with self._lock:
            records = await self._store.scan_by_owner(identity)
            for record in records:
                await self._store.delete(record.session_id)
            return len(records)

    async def find_by_refresh_token(self, identity: str, refresh_token: str) -> SessionRecord | None:
        records = await self._store.scan_by_owner(identity)
        for record in records:
            if record.refresh_token == refresh_token:
                return record
        return None

    async def find_by_access_token(self, identity: str, access_token: str) -> SessionRecord | None:
        records = await self._store.scan_by_owner(identity)
        for record in records:
            if record.access_token == access_token:
                return record
        return None

    async def rotate(
        self, session_id: str, presented_refresh_token: str, tokens: TokenPair
    ) -> SessionRecord | None:
        """Swap in a new token pair if the session still holds the presented refresh token.

        Returns ``None`` when the session is gone or another caller rotated it first.
        """
        async with self._lock:
            record = await self._store.get(session_id)
            if not record or record.refresh_token != presented_refresh_token:
                return None
            rotated = record.with_tokens(tokens, self._clock())
            await self._store.put(rotated)
            return rotated

    def time_until_expiry(self, record: SessionRecord) -> float:
        return max(0.0, self._config.inactivity_seconds - self._idle_for(record))

    def _idle_for(self, record: SessionRecord) -> float:
        return self._clock() - record.last_activity
