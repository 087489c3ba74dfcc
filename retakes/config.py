"""Retake gate configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class RetakeConfig:
    """Score threshold and cooldown rules for quiz retakes."""

    # Scores strictly below this percentage qualify for a retake
    RETAKE_SCORE_THRESHOLD: float = float(os.getenv("RETAKE_SCORE_THRESHOLD", "45"))
    RETAKE_COOLDOWN_MINUTES: int = int(os.getenv("RETAKE_COOLDOWN_MINUTES", "30"))
    MAX_RETAKE_ATTEMPTS: int = int(os.getenv("MAX_RETAKE_ATTEMPTS", "1"))

    @property
    def cooldown_seconds(self) -> int:
        return self.RETAKE_COOLDOWN_MINUTES * 60
