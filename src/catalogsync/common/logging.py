"""Shared logging helpers for catalogsync."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Set up root logging for sync runs.

    Every pipeline logs through ``getLogger(__name__)`` so the bracketed name in
    the output identifies the stage. ``force=True`` replaces existing handlers.
    """

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        force=force,
    )
