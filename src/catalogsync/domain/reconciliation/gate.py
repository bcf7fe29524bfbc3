"""Once-a-day schedule for the whole-catalog reconciliation read."""

from __future__ import annotations

from datetime import date
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

log = getLogger(__name__)


class ReconciliationGate:
    """Allow reconciliation at most once per calendar day, at or after ``hour``.

    The date of the last run is kept in a small stamp file so the limit holds
    across processes.
    """

    def __init__(self, stamp_path: Path, *, hour: int) -> None:
        self._stamp_path = stamp_path
        self._hour = hour

    def last_run(self) -> date | None:
        try:
            text = self._stamp_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        try:
            return date.fromisoformat(text)
        except ValueError:
            log.warning("Ignoring unreadable reconciliation stamp %s: %r", self._stamp_path, text)
            return None

    def should_run(self, now: datetime) -> bool:
        if now.hour < self._hour:
            log.debug("Reconciliation waits until %02d:00 (now %s)", self._hour, now.time())
            return False
        return self.last_run() != now.date()

    def mark_ran(self, now: datetime) -> None:
        self._stamp_path.parent.mkdir(parents=True, exist_ok=True)
        self._stamp_path.write_text(now.date().isoformat(), encoding="utf-8")
