"""Assemble the cleaner pipeline on a document and an event loop."""

import asyncio
import logging
from dataclasses import dataclass, field

from .cache import RecordCache
from .config import RuntimeConfig, SettingsContext, SettingsStore
from .dom import FeedDocument
from .filters import matching_rules
from .models import ItemState, Record, Settings
from .notifier import AdvisoryStatus, NotificationScheduler
from .state import ItemTracker
from .visibility import is_hidden
from .watcher import ItemWatcher

logger = logging.getLogger(__name__)


@dataclass
class ItemDecision:
    """Outcome for one feed item, for reporting."""

    key: int
    state: ItemState
    hidden: bool
    record: Record | None = None
    rules: list[str] = field(default_factory=list)


class FeedCleaner:
    """Watches a FeedDocument and hides items that fail the filters.

    With a SettingsStore, changes made through the store are applied to
    items already on the page without re-extracting them.
    """

    def __init__(
        self,
        document: FeedDocument,
        loop: asyncio.AbstractEventLoop,
        store: SettingsStore | None = None,
        settings: Settings | None = None,
        runtime: RuntimeConfig | None = None,
    ):
        runtime = runtime or RuntimeConfig()
        self.document = document
        self.runtime = runtime
        self.store = store
        self.settings = SettingsContext(store, settings)
        self.tracker = ItemTracker()
        self.cache = RecordCache()
        self.notifier = NotificationScheduler(
            document,
            self.tracker,
            loop,
            delay=runtime.notification_delay,
            min_items=runtime.advisory_min_items,
        )
        self.watcher = ItemWatcher(
            document,
            self.settings,
            loop,
            self.notifier,
            self.tracker,
            self.cache,
            selectors=runtime.selectors,
            initial_sweep_delay=runtime.initial_sweep_delay,
            extraction_delay=runtime.extraction_delay,
        )

    def start(self) -> None:
        logger.info(
            "Starting cleaner on %s (mode=%s)",
            self.document.url,
            self.settings.current.mode.value,
        )
        self.watcher.start()
        if self.store is not None:
            self.store.subscribe(self.watcher.on_settings_changed)

    def stop(self) -> None:
        self.watcher.stop()
        if self.store is not None:
            self.store.unsubscribe(self.watcher.on_settings_changed)

    async def run_until_idle(
        self, poll_interval: float = 0.05, timeout: float = 60.0
    ) -> AdvisoryStatus | None:
        """Wait until no sweep, extraction or advisory timer is pending."""
        async with asyncio.timeout(timeout):
            while not self.watcher.idle:
                await asyncio.sleep(poll_interval)
        return self.notifier.last_status

    def decisions(self) -> list[ItemDecision]:
        """Per-item outcome, in document order."""
        settings = self.settings.current
        results: list[ItemDecision] = []
        for node in self.document.select(self.runtime.selectors.item):
            entry = self.tracker.entry_for(node)
            if entry is None:
                continue
            record = self.cache.get(entry.key)
            results.append(
                ItemDecision(
                    key=entry.key,
                    state=entry.state,
                    hidden=is_hidden(node),
                    record=record,
                    rules=matching_rules(record, settings) if record else [],
                )
            )
        return results
