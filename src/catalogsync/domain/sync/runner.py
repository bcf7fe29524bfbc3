"""One sync run: feed snapshot in, platform and store mutations out."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.config.sync import SyncConfig
from catalogsync.domain.errors import RemoteCatalogError, SafetyAbortError
from catalogsync.domain.model import ItemStatus, PipelineKind
from catalogsync.domain.sync.changes import detect_changes, retry_candidates
from catalogsync.domain.sync.outcome import ItemOutcome, StepResult
from catalogsync.domain.sync.publish import PublishPipeline
from catalogsync.domain.sync.update import UpdatePipeline

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from catalogsync.domain.model import Item
    from catalogsync.domain.ports import FeedProvider, ItemUnitOfWork
    from catalogsync.domain.sync.changes import ChangeSet, ItemChange
    from catalogsync.domain.sync.context import SyncContext

log = getLogger(__name__)

type _Task = Callable[[], ItemOutcome | None]


@dataclass(slots=True)
class SyncRunResult:
    skipped: bool = False
    published: int = 0
    updated: int = 0
    failed: int = 0
    deleted: int = 0
    delete_failed: int = 0
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def add(self, outcome: ItemOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.kind is PipelineKind.DELETE:
            if outcome.error is None:
                self.deleted += 1
            else:
                self.delete_failed += 1
        elif outcome.status is ItemStatus.PUBLISHED:
            self.published += 1
        elif outcome.status is ItemStatus.UPDATED:
            self.updated += 1
        else:
            self.failed += 1

    def summary(self) -> str:
        if self.skipped:
            return "sync skipped: empty feed"
        return (
            f"published={self.published} updated={self.updated} failed={self.failed} "
            f"deleted={self.deleted} delete_failed={self.delete_failed}"
        )


class SyncRunner:
    """Detect changes against the store and drive each item through its pipeline.

    Every item is handled in its own unit of work. Work is processed in
    batches with a pause in between; with ``max_workers > 1`` the items of a
    batch run on a thread pool. The work set never holds the same tag number
    twice, so no item is touched by two workers.
    """

    def __init__(
        self,
        *,
        feed: FeedProvider,
        uow_factory: Callable[[], ItemUnitOfWork],
        context: SyncContext,
        config: SyncConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._feed = feed
        self._uow_factory = uow_factory
        self._ctx = context
        self._config = config or SyncConfig()
        self._sleep = sleep
        self._publish = PublishPipeline(context)
        self._update = UpdatePipeline(context)

    def run(self, *, force_update: bool = False) -> SyncRunResult:
        feed_items = self._feed.get_items()
        if not feed_items:
            log.warning("Feed returned no items; skipping run to protect the catalog")
            return SyncRunResult(skipped=True)

        with self._uow_factory() as uow:
            stored = uow.repositories.items.find_all()
        changes = detect_changes(feed_items, stored, force=force_update).with_retries(
            retry_candidates(stored)
        )
        self._check_deletions(changes)

        result = SyncRunResult()
        if changes.is_empty:
            log.info("Nothing to sync")
            return result

        if self._ctx.definitions is not None:
            self._ctx.definitions.ensure()

        tasks = list(self._tasks(changes))
        log.info(
            "Processing %d item(s): new=%d changed=%d deleted=%d retries=%d",
            len(tasks),
            len(changes.new),
            len(changes.changed),
            len(changes.deleted),
            len(changes.retries),
        )
        for outcome in self._execute(tasks):
            result.add(outcome)

        log.info("Sync finished: %s", result.summary())
        if result.failed or result.delete_failed:
            self._ctx.notifier.send(
                "Sync finished with failures",
                "\n".join(
                    [result.summary(), ""]
                    + [f"{o.tag_number}: {o.error}" for o in result.outcomes if o.error]
                ),
            )
        return result

    def _check_deletions(self, changes: ChangeSet) -> None:
        requested = len(changes.deleted)
        ceiling = self._config.max_to_delete
        if requested > ceiling:
            message = (
                f"Refusing to delete {requested} item(s) in one run (limit {ceiling}); "
                "check the feed, then raise SYNC_MAX_TO_DELETE if the deletions are expected"
            )
            log.error(message)
            raise SafetyAbortError(message, requested=requested, ceiling=ceiling)

    def _tasks(self, changes: ChangeSet) -> Iterator[_Task]:
        for item in changes.deleted:
            yield lambda item=item: self._delete(item.tag_number)
        for item in changes.new:
            yield lambda item=item: self._publish_new(item)
        for change in changes.changed:
            yield lambda change=change: self._apply_change(change)
        for item in changes.retries:
            yield lambda item=item: self._retry(item.tag_number)

    def _execute(self, tasks: Sequence[_Task]) -> Iterator[ItemOutcome]:
        size = self._config.batch_size
        batches = [tasks[start : start + size] for start in range(0, len(tasks), size)]
        workers = self._config.max_workers
        executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            for index, batch in enumerate(batches):
                if index and self._config.batch_delay_seconds > 0:
                    self._sleep(self._config.batch_delay_seconds)
                log.debug("Batch %d/%d (%d item(s))", index + 1, len(batches), len(batch))
                if executor is None:
                    outcomes = [task() for task in batch]
                else:
                    outcomes = list(executor.map(lambda task: task(), batch))
                yield from (outcome for outcome in outcomes if outcome is not None)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

    def _delete(self, tag_number: str) -> ItemOutcome | None:
        outcome = ItemOutcome(tag_number=tag_number, kind=PipelineKind.DELETE)
        with self._uow_factory() as uow:
            items = uow.repositories.items
            item = items.get(tag_number)
            if item is None:
                return None
            outcome.platform_id = item.platform_id
            if item.platform_id:
                try:
                    self._ctx.client.delete_entry(item.platform_id)
                except RemoteCatalogError as exc:
                    log.error(
                        "Deleting entry %s for %s failed: %s", item.platform_id, tag_number, exc
                    )
                    outcome.record(StepResult.fatal("delete_entry", str(exc)))
                    outcome.error = str(exc)
                    return outcome
                outcome.record(StepResult.success("delete_entry"))
            else:
                outcome.record(StepResult.skipped("delete_entry", "never published"))
            item.transition_to(ItemStatus.DELETED)
            outcome.status = item.status
            items.delete(item)
            uow.commit()
        log.info("Deleted item %s", tag_number)
        return outcome

    def _publish_new(self, incoming: Item) -> ItemOutcome:
        with self._uow_factory() as uow:
            items = uow.repositories.items
            items.add(incoming)
            uow.commit()
            outcome = self._publish.execute(incoming)
            items.save(incoming)
            uow.commit()
        return outcome

    def _apply_change(self, change: ItemChange) -> ItemOutcome | None:
        with self._uow_factory() as uow:
            items = uow.repositories.items
            item = items.get(change.tag_number)
            if item is None:
                log.warning("Item %s vanished from the store; skipping", change.tag_number)
                return None
            previous = replace(item)
            item.copy_from(change.incoming)
            outcome = self._route(item, previous=previous, uow=uow)
            items.save(item)
            uow.commit()
        return outcome

    def _retry(self, tag_number: str) -> ItemOutcome | None:
        with self._uow_factory() as uow:
            items = uow.repositories.items
            item = items.get(tag_number)
            if item is None:
                return None
            log.info("Retrying item %s (%s)", tag_number, item.status)
            outcome = self._route(item, previous=None, uow=uow)
            items.save(item)
            uow.commit()
        return outcome

    def _route(self, item: Item, *, previous: Item | None, uow: ItemUnitOfWork) -> ItemOutcome:
        """Publish items the platform never received; update everything else."""
        if not item.platform_id and item.status in (
            ItemStatus.NEW_WAITING_PUBLISH,
            ItemStatus.PUBLISH_FAILED,
        ):
            return self._publish.execute(item)
        if item.status is not ItemStatus.CHANGED_WAITING_UPDATE:
            item.transition_to(ItemStatus.CHANGED_WAITING_UPDATE)
            uow.repositories.items.save(item)
            uow.commit()
        return self._update.execute(item, previous=previous)
