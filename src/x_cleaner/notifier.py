"""Advise the user when the current filters hide everything.

Updates are debounced on the trailing edge: every trigger restarts the
timer and only the last trigger of a burst recomputes. When more than
``min_items`` items are done and none of them is shown, a single
dismissible banner is added to the page; otherwise any banner is removed.
"""

import asyncio
import logging
from dataclasses import dataclass

from .dom import FeedDocument
from .models import ItemState
from .state import ItemTracker
from .timers import DebounceTimer
from .visibility import is_hidden

logger = logging.getLogger(__name__)

BANNER_ID = "x-cleaner-notification"
BANNER_TITLE = "Filters are too strict"
BANNER_MESSAGE = (
    "Almost nothing in this feed passes the current filters. "
    "Consider relaxing them."
)

BANNER_HTML = f"""\
<div id="{BANNER_ID}" role="alert" style="position: fixed; top: 60px; left: 50%; \
transform: translateX(-50%); z-index: 10000; background: #1d9bf0; color: white; \
padding: 16px 20px; border-radius: 12px; max-width: 500px">\
<div class="x-cleaner-title">{BANNER_TITLE}</div>\
<div class="x-cleaner-message">{BANNER_MESSAGE}</div>\
<button type="button" class="x-cleaner-close" aria-label="Dismiss">×</button>\
</div>"""


@dataclass(frozen=True)
class AdvisoryStatus:
    total: int
    shown: int
    hidden: int
    banner_visible: bool


class NotificationScheduler:
    def __init__(
        self,
        document: FeedDocument,
        tracker: ItemTracker,
        loop: asyncio.AbstractEventLoop,
        delay: float = 1.0,
        min_items: int = 20,
    ):
        self._document = document
        self._tracker = tracker
        self._timer = DebounceTimer(loop, delay, self.update)
        self.min_items = min_items
        self.last_status: AdvisoryStatus | None = None

    def schedule(self) -> None:
        """Request a recomputation after the debounce delay."""
        self._timer.trigger()

    def cancel(self) -> None:
        self._timer.cancel()

    @property
    def pending(self) -> bool:
        return self._timer.pending

    @property
    def banner_visible(self) -> bool:
        return self._document.get_element_by_id(BANNER_ID) is not None

    def update(self) -> AdvisoryStatus:
        done = self._tracker.entries(ItemState.DONE)
        hidden = sum(1 for entry in done if is_hidden(entry.node))
        shown = len(done) - hidden

        if len(done) > self.min_items and shown == 0:
            self.show_banner()
        else:
            self.hide_banner()

        self.last_status = AdvisoryStatus(
            total=len(done),
            shown=shown,
            hidden=hidden,
            banner_visible=self.banner_visible,
        )
        logger.debug(
            "Advisory check: %d done, %d shown, %d hidden",
            len(done),
            shown,
            hidden,
        )
        return self.last_status

    def show_banner(self) -> None:
        if self.banner_visible:
            return
        self._document.append(BANNER_HTML)
        logger.info("All processed items are hidden. Showing advisory banner.")

    def hide_banner(self) -> None:
        banner = self._document.get_element_by_id(BANNER_ID)
        if banner is not None:
            self._document.remove(banner)
            logger.info("Advisory banner removed.")

    def dismiss(self) -> None:
        """Close the banner as the user would; the next trigger may show it again."""
        banner = self._document.get_element_by_id(BANNER_ID)
        if banner is not None:
            self._document.remove(banner)
            logger.info("Advisory banner dismissed.")
