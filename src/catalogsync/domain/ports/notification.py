"""Port for operator notifications."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """Fire-and-forget message delivery.

    Implementations log delivery failures and never raise them.
    """

    def send(self, subject: str, body: str) -> None: ...


__all__ = ["Notifier"]
