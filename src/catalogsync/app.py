"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.feed import HttpFeedProvider
from catalogsync.adapters.images import HostedImageProvider
from catalogsync.adapters.notifier import build_notifier
from catalogsync.adapters.shopify import ShopifyCatalogClient
from catalogsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyItemUnitOfWork,
    is_started,
    startup,
)
from catalogsync.config import (
    get_feed_config,
    get_notifier_config,
    get_storage_config,
    get_sync_config,
    optional_env,
)
from catalogsync.domain.errors import SafetyAbortError
from catalogsync.domain.model import utcnow
from catalogsync.domain.ports.unit_of_work import ItemUnitOfWork
from catalogsync.domain.reconciliation import ReconciliationGate, ReconciliationService
from catalogsync.domain.sync import SyncContext, SyncRunner

if TYPE_CHECKING:
    from datetime import datetime

    from catalogsync.config import SyncConfig
    from catalogsync.domain.ports import (
        FeedProvider,
        ImageProvider,
        Notifier,
        RemoteCatalogClient,
    )
    from catalogsync.domain.reconciliation import ReconciliationReport, ReconciliationResult
    from catalogsync.domain.sync import SyncRunResult

UnitOfWorkFactory = Callable[[], ItemUnitOfWork]


log = getLogger(__name__)


def _ensure_storage() -> None:
    if not is_started():
        startup()


def _default_images() -> ImageProvider:
    return HostedImageProvider(base_url=optional_env("IMAGE_HOSTING_BASE_URL"))


def _default_feed() -> FeedProvider:
    return HttpFeedProvider(config=get_feed_config())


def run_sync(
    *,
    feed: FeedProvider | None = None,
    client: RemoteCatalogClient | None = None,
    notifier: Notifier | None = None,
    images: ImageProvider | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    force_update: bool = False,
) -> SyncRunResult:
    """Run one incremental sync of the feed into the store and the platform."""

    _ensure_storage()
    effective_config = config or get_sync_config()
    if feed is None:
        feed_config = get_feed_config()
        feed = HttpFeedProvider(config=feed_config)
        images = images or HostedImageProvider(base_url=feed_config.image_base_url)
    context = SyncContext.create(
        client or ShopifyCatalogClient(),
        images or _default_images(),
        notifier or build_notifier(get_notifier_config()),
    )
    runner = SyncRunner(
        feed=feed,
        uow_factory=unit_of_work_factory or SqlAlchemyItemUnitOfWork,
        context=context,
        config=effective_config,
    )
    log.info(
        "Starting sync: force_update=%s, batch_size=%s, workers=%s, max_to_delete=%s",
        force_update,
        effective_config.batch_size,
        effective_config.max_workers,
        effective_config.max_to_delete,
    )

    try:
        result = runner.run(force_update=force_update)
    except SafetyAbortError as exc:
        context.notifier.send("Sync aborted by safety check", str(exc))
        raise

    log.info("Finished sync: %s", result.summary())
    return result


def analyze_catalog(
    *,
    feed: FeedProvider | None = None,
    client: RemoteCatalogClient | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> ReconciliationReport:
    """Compare the platform catalog with the store and the feed, changing nothing."""

    _ensure_storage()
    service = ReconciliationService(
        client=client or ShopifyCatalogClient(),
        uow_factory=unit_of_work_factory or SqlAlchemyItemUnitOfWork,
        config=config or get_sync_config(),
        feed=feed or _default_feed(),
    )
    log.info("Starting catalog analysis")
    report = service.analyze()
    log.info("Finished catalog analysis: %s", report.message)
    return report


def reconcile_catalog(
    *,
    force: bool = False,
    ignore_schedule: bool = False,
    feed: FeedProvider | None = None,
    client: RemoteCatalogClient | None = None,
    notifier: Notifier | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    gate: ReconciliationGate | None = None,
    now: datetime | None = None,
) -> ReconciliationResult | None:
    """Correct store/platform drift; ``None`` when the daily schedule says not yet."""

    _ensure_storage()
    effective_config = config or get_sync_config()
    effective_gate = gate or ReconciliationGate(
        get_storage_config().reconciliation_stamp_path(),
        hour=effective_config.reconciliation_hour,
    )
    moment = now or utcnow()
    if not ignore_schedule and not effective_gate.should_run(moment):
        log.info("Reconciliation not due yet; skipping")
        return None

    effective_notifier = notifier or build_notifier(get_notifier_config())
    service = ReconciliationService(
        client=client or ShopifyCatalogClient(),
        uow_factory=unit_of_work_factory or SqlAlchemyItemUnitOfWork,
        config=effective_config,
        feed=feed or _default_feed(),
    )
    log.info("Starting reconciliation: force=%s", force)
    try:
        result = service.reconcile(force=force)
    except SafetyAbortError as exc:
        effective_notifier.send("Reconciliation aborted by safety check", str(exc))
        raise
    finally:
        # aborted and failed passes also count as the day's run
        effective_gate.mark_ran(moment)

    if not result.success:
        effective_notifier.send(
            "Reconciliation finished with errors",
            "\n".join([result.message, "", *result.errors]),
        )
    log.info("Finished reconciliation: %s", result.message)
    return result
