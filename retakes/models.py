"""Retake record and its derived states."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class RetakeState(str, Enum):
    NONE = "none"
    COOLING = "cooling"
    AVAILABLE = "available"
    CONSUMED = "consumed"


@dataclass(frozen=True)
class RetakeRecord:
    """Retake bookkeeping for one (user, quiz) pair.

    ``attempts`` counts retakes already started; ``cooldown_until`` is an
    epoch timestamp or ``None`` when no cooldown is running.
    """

    user_email: str
    quiz_id: str
    attempts: int = 0
    cooldown_until: float | None = None
    can_retake: bool = False
    max_attempts: int = 1

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_email, self.quiz_id)

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempts)

    @property
    def state(self) -> RetakeState:
        if self.cooldown_until is not None:
            return RetakeState.COOLING
        if self.can_retake:
            return RetakeState.AVAILABLE
        if self.attempts >= self.max_attempts:
            return RetakeState.CONSUMED
        return RetakeState.NONE

    def update(self, **changes: Any) -> RetakeRecord:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        cooldown = None
        if self.cooldown_until is not None:
            cooldown = datetime.fromtimestamp(self.cooldown_until, tz=timezone.utc).isoformat()
        return {
            "quiz_id": self.quiz_id,
            "attempts": self.attempts,
            "attempts_remaining": self.attempts_remaining,
            "cooldown_until": cooldown,
            "can_retake": self.can_retake,
            "state": self.state.value,
        }
