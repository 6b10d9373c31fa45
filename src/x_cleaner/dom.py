"""Host document: a BeautifulSoup tree that reports its own mutations.

The page owns the feed markup; the cleaner only observes it. All
structural changes go through FeedDocument.append / remove so that
observers receive MutationRecords the same way a browser's mutation
observer would deliver them (added and removed subtrees, no attribute
changes). Several changes can be grouped into one delivery with batch().
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag


DEFAULT_URL = "https://x.com/home"


@dataclass
class MutationRecord:
    added_nodes: list[Tag] = field(default_factory=list)
    removed_nodes: list[Tag] = field(default_factory=list)


MutationCallback = Callable[[list[MutationRecord]], None]


class FeedDocument:
    """A live, mutable feed page."""

    def __init__(self, html: str = "", url: str = DEFAULT_URL):
        self.soup = BeautifulSoup(html, "html.parser")
        self.url = url
        self._observers: list[MutationCallback] = []
        self._batch_depth = 0
        self._queued: list[MutationRecord] = []
        self._ensure_body()

    def _ensure_body(self) -> None:
        # html.parser does not synthesize <body> for fragments
        if self.soup.body is not None:
            return
        body = self.soup.new_tag("body")
        for child in list(self.soup.contents):
            body.append(child.extract())
        self.soup.append(body)

    @property
    def body(self) -> Tag:
        return self.soup.body

    @property
    def path(self) -> str:
        return urlparse(self.url).path

    # ── Observation ─────────────────────────────────────────────

    def observe(self, callback: MutationCallback) -> None:
        self._observers.append(callback)

    def disconnect(self, callback: MutationCallback) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Deliver every mutation made inside the block as one batch."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._queued:
                records, self._queued = self._queued, []
                self._deliver(records)

    def _record(self, record: MutationRecord) -> None:
        if self._batch_depth:
            self._queued.append(record)
        else:
            self._deliver([record])

    def _deliver(self, records: list[MutationRecord]) -> None:
        for callback in list(self._observers):
            callback(records)

    # ── Mutation ────────────────────────────────────────────────

    def append(
        self,
        markup: str | Tag,
        parent: Tag | None = None,
        position: int | None = None,
    ) -> list[Tag]:
        """Insert markup under parent (default: <body>) and report it.

        position inserts at that child index instead of appending.
        Returns the inserted element nodes.
        """
        parent = parent if parent is not None else self.body
        if isinstance(markup, Tag):
            nodes = [markup.extract()]
        else:
            fragment = BeautifulSoup(markup, "html.parser")
            nodes = [child.extract() for child in list(fragment.contents)]

        for offset, node in enumerate(nodes):
            if position is None:
                parent.append(node)
            else:
                parent.insert(position + offset, node)

        elements = [n for n in nodes if isinstance(n, Tag)]
        if elements:
            self._record(MutationRecord(added_nodes=elements))
        return elements

    def remove(self, node: Tag) -> None:
        """Detach node (and its subtree) from the document and report it.

        Nodes that are not in the document are left alone.
        """
        if node is self.soup or not self.contains(node):
            return
        node.extract()
        self._record(MutationRecord(removed_nodes=[node]))

    # ── Queries ─────────────────────────────────────────────────

    def select(self, selector: str, root: Tag | None = None) -> list[Tag]:
        root = root if root is not None else self.soup
        return list(root.select(selector))

    def collect(self, root: Tag, selector: str) -> list[Tag]:
        """Return root (if it matches) followed by matching descendants."""
        found = [root] if root.css.match(selector) else []
        found.extend(root.select(selector))
        return found

    def contains(self, node: Tag) -> bool:
        return node is self.soup or any(p is self.soup for p in node.parents)

    def get_element_by_id(self, element_id: str) -> Tag | None:
        return self.soup.find(id=element_id)

    def serialize(self) -> str:
        return str(self.soup)
