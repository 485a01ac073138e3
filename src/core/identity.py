"""Authenticated identity providers (opaque owner ids for record-store scoping)."""

from __future__ import annotations

from typing import Protocol


class IdentityProvider(Protocol):
    def current_user_id(self) -> str | None: ...


class StaticIdentity:
    """Identity provider that always reports the same owner id."""

    def __init__(self, user_id: str | None):
        self._user_id = user_id

    def current_user_id(self) -> str | None:
        return self._user_id
