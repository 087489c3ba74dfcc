"""Credential store interface."""

from __future__ import annotations

from typing import Protocol


class UserStore(Protocol):
    """Per-user credential records keyed by lower-cased email.

    Records are plain dicts with ``email``, ``hashed_password``,
    ``department`` and ``is_admin`` keys.
    """

    async def get_by_email(self, email: str) -> dict | None:
        ...

    async def create_user(self, data: dict) -> dict:
        ...

    async def update_user(self, email: str, updates: dict) -> dict:
        ...
