"""Where the item store, the feed cache and the reconciliation stamp live."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env

APP_DIR_NAME: Final[str] = "catalogsync"
DATABASE_FILENAME: Final[str] = "catalogsync.db"
HTTP_CACHE_FILENAME: Final[str] = "feed_cache.db"
RECONCILIATION_STAMP_FILENAME: Final[str] = "last_reconciliation"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """All state files sit side by side in ``data_dir``, created on first use."""

    data_dir: Path

    def _file(self, name: str, *, ensure: bool) -> Path:
        if ensure:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir / name

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._file(DATABASE_FILENAME, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._file(HTTP_CACHE_FILENAME, ensure=ensure)

    def reconciliation_stamp_path(self, *, ensure: bool = True) -> Path:
        return self._file(RECONCILIATION_STAMP_FILENAME, ensure=ensure)


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith("sqlite")


def get_storage_config() -> StorageConfig:
    """``CATALOGSYNC_DATA_DIR``, else ``$XDG_DATA_HOME/catalogsync`` (``~/.local/share``)."""
    configured = optional_env("CATALOGSYNC_DATA_DIR")
    if configured:
        data_dir = Path(configured)
    else:
        xdg = optional_env("XDG_DATA_HOME")
        data_dir = (Path(xdg) if xdg else Path.home() / ".local" / "share") / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir.expanduser().resolve())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    echo = (optional_env("DATABASE_ECHO") or "").lower() in {"1", "true", "yes"}
    uri = optional_env("DATABASE_URI")
    if uri is None:
        database_path = (storage or get_storage_config()).database_path()
        uri = f"sqlite+pysqlite:///{database_path}"
    return DatabaseConfig(uri=uri, echo=echo)
