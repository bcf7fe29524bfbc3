"""Tuning knobs for sync runs and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int
from .errors import InvalidConfigurationError

DEFAULT_BATCH_SIZE = 25
DEFAULT_BATCH_DELAY_SECONDS = 1.0
DEFAULT_MAX_TO_DELETE = 25
DEFAULT_MAX_WORKERS = 1
DEFAULT_RECONCILIATION_HOUR = 3


@dataclass(frozen=True, slots=True)
class SyncConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    # ceiling on deletions a single run or reconciliation may apply without force
    max_to_delete: int = DEFAULT_MAX_TO_DELETE
    max_workers: int = DEFAULT_MAX_WORKERS
    reconciliation_hour: int = DEFAULT_RECONCILIATION_HOUR


def get_sync_config() -> SyncConfig:
    hour = env_int("SYNC_RECONCILIATION_HOUR", DEFAULT_RECONCILIATION_HOUR, minimum=0)
    if hour > 23:  # noqa: PLR2004
        raise InvalidConfigurationError(f"SYNC_RECONCILIATION_HOUR must be 0-23, got {hour}")
    return SyncConfig(
        batch_size=env_int("SYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
        batch_delay_seconds=env_float(
            "SYNC_BATCH_DELAY_SECONDS", DEFAULT_BATCH_DELAY_SECONDS, minimum=0.0
        ),
        max_to_delete=env_int("SYNC_MAX_TO_DELETE", DEFAULT_MAX_TO_DELETE, minimum=0),
        max_workers=env_int("SYNC_MAX_WORKERS", DEFAULT_MAX_WORKERS, minimum=1),
        reconciliation_hour=hour,
    )
