"""Discover feed items and drive each one through extraction and filtering.

Every item node moves through unprocessed -> pending -> done exactly once
per stay in the tree:

    observed --(begin, same callback)--> pending
    pending  --(extraction_delay)-----> extract, cache, decide, apply -> done

The synchronous move to pending is the only gate against processing a
node twice; no locking is involved since everything runs on one event
loop. On a settings change only visibility is recomputed, from the cached
Records.
"""

import asyncio
import logging

from bs4 import Tag

from .cache import RecordCache
from .config import SYNC_NAMESPACE, Selectors, SettingsContext
from .dom import FeedDocument, MutationRecord
from .extractor import extract_record
from .filters import should_hide
from .models import ItemState, Mode
from .notifier import NotificationScheduler
from .state import ItemTracker
from .timers import KeyedTimers
from .visibility import apply_visibility

logger = logging.getLogger(__name__)

DETAIL_VIEW_MARKER = "/status/"


def is_detail_view(path: str) -> bool:
    """Single-post pages are never filtered."""
    return DETAIL_VIEW_MARKER in path


class ItemWatcher:
    def __init__(
        self,
        document: FeedDocument,
        settings: SettingsContext,
        loop: asyncio.AbstractEventLoop,
        notifier: NotificationScheduler,
        tracker: ItemTracker,
        cache: RecordCache,
        selectors: Selectors = Selectors(),
        initial_sweep_delay: float = 0.5,
        extraction_delay: float = 0.3,
    ):
        self._document = document
        self._settings = settings
        self._loop = loop
        self._notifier = notifier
        self._tracker = tracker
        self._cache = cache
        self._selectors = selectors
        self._timers = KeyedTimers(loop)
        self._sweep_handle: asyncio.TimerHandle | None = None
        self.initial_sweep_delay = initial_sweep_delay
        self.extraction_delay = extraction_delay

    def start(self) -> None:
        """Observe the document and schedule the initial sweep."""
        self._document.observe(self.handle_mutations)
        self._sweep_handle = self._loop.call_later(self.initial_sweep_delay, self.sweep)

    def stop(self) -> None:
        self._document.disconnect(self.handle_mutations)
        if self._sweep_handle is not None:
            self._sweep_handle.cancel()
            self._sweep_handle = None
        self._timers.cancel_all()
        self._notifier.cancel()

    @property
    def pending_count(self) -> int:
        """Items waiting for their extraction timer."""
        return len(self._timers)

    @property
    def idle(self) -> bool:
        return (
            self._sweep_handle is None
            and not self._timers
            and not self._notifier.pending
        )

    def sweep(self) -> int:
        """Process every item already in the document."""
        self._sweep_handle = None
        items = self._document.select(self._selectors.item)
        started = sum(1 for node in items if self.process(node))
        logger.info("Initial sweep: %d items found, %d new", len(items), started)
        self._notifier.schedule()
        return started

    def handle_mutations(self, records: list[MutationRecord]) -> None:
        started = 0
        for record in records:
            for node in record.removed_nodes:
                for item in self._document.collect(node, self._selectors.item):
                    self._forget(item)
            for node in record.added_nodes:
                for item in self._document.collect(node, self._selectors.item):
                    if self.process(item):
                        started += 1

        if started:
            logger.debug("Mutation batch: %d new items", started)
            self._notifier.schedule()

    def process(self, node: Tag) -> bool:
        """Start processing an unprocessed item.

        Returns True if the node was new, False if it was already seen.
        """
        entry = self._tracker.begin(node)
        if entry is None:
            return False

        if self._settings.current.mode == Mode.ORIGINAL:
            self._tracker.mark_done(entry)
            return True

        if is_detail_view(self._document.path):
            self._tracker.mark_done(entry)
            return True

        self._timers.start(entry.key, self.extraction_delay, self.finalize, node)
        return True

    def finalize(self, node: Tag) -> None:
        """Extract, decide and apply for a pending item."""
        entry = self._tracker.entry_for(node)
        if entry is None or entry.state != ItemState.PENDING:
            return

        record = extract_record(node, self._selectors)
        self._cache.put(entry.key, record)
        hidden = should_hide(record, self._settings.current)
        apply_visibility(node, hidden)
        self._tracker.mark_done(entry)
        logger.debug("item %d: %s", entry.key, "hidden" if hidden else "shown")

        self._notifier.schedule()

    def _forget(self, node: Tag) -> None:
        entry = self._tracker.forget(node)
        if entry is None:
            return
        self._timers.cancel(entry.key)
        self._cache.discard(entry.key)

    def on_settings_changed(self, changes: dict, namespace: str) -> None:
        """Settings store listener."""
        if namespace != SYNC_NAMESPACE:
            return
        self._settings.refresh()
        self.refresh_visibility()

    def refresh_visibility(self) -> int:
        """Re-decide every done item from its cached Record."""
        settings = self._settings.current
        updated = 0
        for entry in self._tracker.entries(ItemState.DONE):
            record = self._cache.get(entry.key)
            if record is None:
                continue
            apply_visibility(entry.node, should_hide(record, settings))
            updated += 1

        logger.info("Visibility refreshed for %d items", updated)
        self._notifier.schedule()
        return updated
