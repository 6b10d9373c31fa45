"""Extracted Records, keyed by item key.

Written once per item when it reaches the done state and read on every
settings change. Entries are discarded explicitly when the item leaves
the tree, so the cache never outlives the node it describes.
"""

from .models import Record


class RecordCache:
    def __init__(self):
        self._records: dict[int, Record] = {}

    def put(self, key: int, record: Record) -> None:
        self._records[key] = record

    def get(self, key: int) -> Record | None:
        return self._records.get(key)

    def discard(self, key: int) -> None:
        self._records.pop(key, None)

    def __contains__(self, key: int) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
