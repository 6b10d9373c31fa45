"""Track the processing state of feed-item nodes.

Every item node the watcher observes gets an ItemEntry with a stable key
and an ItemState (unprocessed -> pending -> done). The state is mirrored
onto the node as the data-x-processed attribute:

    <article data-testid="tweet" data-x-processed="done">

Entries are dropped with forget() when the node leaves the tree.
"""

import itertools
import logging
from dataclasses import dataclass

from bs4 import Tag

from .models import ItemState

logger = logging.getLogger(__name__)

STATE_ATTRIBUTE = "data-x-processed"


@dataclass
class ItemEntry:
    key: int
    node: Tag
    state: ItemState = ItemState.UNPROCESSED


class ItemTracker:
    def __init__(self):
        # Keyed by id(node). The entry holds the node, so the id cannot be
        # reused by another object while the entry exists.
        self._entries: dict[int, ItemEntry] = {}
        self._keys = itertools.count(1)

    def entry_for(self, node: Tag) -> ItemEntry | None:
        return self._entries.get(id(node))

    def state_of(self, node: Tag) -> ItemState:
        entry = self.entry_for(node)
        return entry.state if entry else ItemState.UNPROCESSED

    def begin(self, node: Tag) -> ItemEntry | None:
        """Move an unprocessed node to pending.

        Returns the new entry, or None if the node was already seen.
        """
        if id(node) in self._entries:
            return None
        entry = ItemEntry(key=next(self._keys), node=node, state=ItemState.PENDING)
        self._entries[id(node)] = entry
        node[STATE_ATTRIBUTE] = ItemState.PENDING.value
        logger.debug("item %d: pending", entry.key)
        return entry

    def mark_done(self, entry: ItemEntry) -> None:
        entry.state = ItemState.DONE
        entry.node[STATE_ATTRIBUTE] = ItemState.DONE.value
        logger.debug("item %d: done", entry.key)

    def forget(self, node: Tag) -> ItemEntry | None:
        """Drop the entry for a node that left the tree."""
        entry = self._entries.pop(id(node), None)
        if entry is not None:
            if STATE_ATTRIBUTE in node.attrs:
                del node[STATE_ATTRIBUTE]
            logger.debug("item %d: removed", entry.key)
        return entry

    def entries(self, state: ItemState | None = None) -> list[ItemEntry]:
        return [
            e for e in self._entries.values() if state is None or e.state == state
        ]

    def count(self, state: ItemState | None = None) -> int:
        return len(self.entries(state))

    def __len__(self) -> int:
        return len(self._entries)
