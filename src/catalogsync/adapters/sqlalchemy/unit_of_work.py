"""SQLAlchemy-backed unit of work for the item store."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from catalogsync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from catalogsync.adapters.sqlalchemy.repositories import SqlAlchemyItemRepository
from catalogsync.config.storage import DatabaseConfig, get_database_config
from catalogsync.domain.ports.unit_of_work import ItemRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)

# sync workers write from several threads; give them time to take the lock
SQLITE_BUSY_TIMEOUT_MS = 30_000


class StartupError(RuntimeError):
    """Raised when the item store is used before :func:`startup` (or started twice)."""


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def build_engine(config: DatabaseConfig) -> Engine:
    """Create an engine; SQLite connections are shared across worker threads."""
    if not config.is_sqlite:
        return create_engine(config.uri, echo=config.echo, future=True)

    engine = create_engine(
        config.uri,
        echo=config.echo,
        future=True,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _configure_sqlite(dbapi_connection: Any, _record: object) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
            cursor.execute("PRAGMA journal_mode = WAL")
        finally:
            cursor.close()

    return engine


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Open the item store, creating the schema on first use."""
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None and not force:
        raise StartupError("Item store already started. Pass force=True to reconfigure.")

    if engine is None:
        config = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
        engine = build_engine(config)
    start_mappers()
    create_all_tables(engine)
    log.info("Item store ready at %s", engine.url.render_as_string(hide_password=True))

    if _engine is not None and _engine is not engine:
        _engine.dispose()
    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)


def configured_engine() -> Engine | None:
    return _engine


def is_started() -> bool:
    return _engine is not None


def shutdown() -> None:
    """Dispose the engine; :func:`startup` has to run again before the next unit of work."""
    global _engine, _session_factory  # noqa: PLW0603

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


class SqlAlchemyItemUnitOfWork:
    """One session over the item table; rolled back if the block raises.

    Items are not expired on commit, so they stay readable after the block.
    """

    def __init__(self) -> None:
        if _session_factory is None:
            raise StartupError(
                "Item store not started. Call "
                "catalogsync.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        self._session_factory = _session_factory
        self._session: Session | None = None
        self._repositories: ItemRepositories | None = None

    def __enter__(self) -> SqlAlchemyItemUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already entered")
        self._session = self._session_factory()
        self._repositories = ItemRepositories(items=SqlAlchemyItemRepository(self._session))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                log.debug("Rolling back item store changes after %s", exc_type.__name__)
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> ItemRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._session


if TYPE_CHECKING:
    from catalogsync.domain.ports.unit_of_work import ItemUnitOfWork

    _uow_check: ItemUnitOfWork = SqlAlchemyItemUnitOfWork()
