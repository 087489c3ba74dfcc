"""Score-gated retake cooldown state machine."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from auth.interfaces.user_store import UserStore
from retakes.config import RetakeConfig
from retakes.exceptions import RetakeNotEligible, RetakeNotFound
from retakes.interfaces import RetakeStore
from retakes.models import RetakeRecord

logger = logging.getLogger(__name__)


class _KeyLock:
    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


def reconcile(record: RetakeRecord, now: float) -> RetakeRecord:
    """Apply the elapsed-cooldown transition without touching any store."""
    if record.cooldown_until is not None and now >= record.cooldown_until:
        return record.update(
            can_retake=record.attempts < record.max_attempts,
            cooldown_until=None,
        )
    return record


class RetakeGate:
    """Owns every transition of a retake record.

    States: NONE -> COOLING -> AVAILABLE -> (start) COOLING -> CONSUMED.
    Starting a retake, not completing it, spends the attempt. All
    read-modify-write sequences are serialized per (user, quiz) key.
    """

    def __init__(
        self,
        store: RetakeStore,
        user_store: UserStore | None = None,
        config: RetakeConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._users = user_store
        self._config = config or RetakeConfig()
        self._clock = clock
        self._locks: dict[tuple[str, str], _KeyLock] = {}

    @property
    def config(self) -> RetakeConfig:
        return self._config

    def qualifies(self, score: float) -> bool:
        return score < self._config.RETAKE_SCORE_THRESHOLD

    async def record_submission(self, user_email: str, quiz_id: str, score: float) -> RetakeRecord | None:
        """Arm the cooldown after a failing score; passing scores leave the gate untouched."""
        if not self.qualifies(score):
            return None

        async with self._locked(user_email, quiz_id):
            now = self._clock()
            record = await self._store.get(user_email, quiz_id)
            if record is None:
                record = self._new_record(user_email, quiz_id).update(
                    cooldown_until=now + self._config.cooldown_seconds
                )
            else:
                record = reconcile(record, now)
                if record.cooldown_until is not None:
                    return record
                record = record.update(
                    cooldown_until=now + self._config.cooldown_seconds,
                    can_retake=False,
                )
            await self._store.put(record)

        logger.info("Armed retake cooldown for %s on quiz %s (score %s)", user_email, quiz_id, score)
        return record

    async def status(self, user_email: str, quiz_id: str) -> RetakeRecord:
        async with self._locked(user_email, quiz_id):
            stored = await self._store.get(user_email, quiz_id)
            record = reconcile(stored or self._new_record(user_email, quiz_id), self._clock())
            if record != stored:
                await self._store.put(record)
            return record

    async def start_retake(self, user_email: str, quiz_id: str, score: float) -> RetakeRecord:
        if self._users is not None and not await self._users.get_by_email(user_email):
            raise RetakeNotFound("User not found")

        if not self.qualifies(score):
            raise RetakeNotEligible(
                f"Retakes only allowed for scores below {self._config.RETAKE_SCORE_THRESHOLD:g}"
            )

        async with self._locked(user_email, quiz_id):
            now = self._clock()
            stored = await self._store.get(user_email, quiz_id)
            record = reconcile(stored or self._new_record(user_email, quiz_id), now)
            if record.attempts >= record.max_attempts:
                raise RetakeNotEligible("Maximum retake attempts reached")

            record = record.update(
                attempts=record.attempts + 1,
                cooldown_until=now + self._config.cooldown_seconds,
                can_retake=False,
            )
            await self._store.put(record)

        logger.info("Started retake for %s on quiz %s", user_email, quiz_id)
        return record

    async def complete_retake(self, user_email: str, quiz_id: str) -> RetakeRecord:
        async with self._locked(user_email, quiz_id):
            record = await self._store.get(user_email, quiz_id)
            if record is None:
                raise RetakeNotFound("No retake data found")
            record = record.update(can_retake=False, cooldown_until=None)
            await self._store.put(record)

        logger.info("Completed retake for %s on quiz %s", user_email, quiz_id)
        return record

    def _new_record(self, user_email: str, quiz_id: str) -> RetakeRecord:
        return RetakeRecord(
            user_email=user_email,
            quiz_id=quiz_id,
            max_attempts=self._config.MAX_RETAKE_ATTEMPTS,
        )

    @asynccontextmanager
    async def _locked(self, user_email: str, quiz_id: str) -> AsyncIterator[None]:
        """Hold the (user, quiz) lock; the entry is dropped once nobody holds or awaits it."""
        key = (user_email, quiz_id)
        entry = self._locks.setdefault(key, _KeyLock())
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]
