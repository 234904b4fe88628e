from collections import OrderedDict
from typing import Optional

from roomkeeper.domains.publishing.entities import PublishSnapshot


class SnapshotCache:
    """Bounded, least-recently-used cache of the current snapshot per slug.

    One instance belongs to one application; it is the fallback when the
    durable store cannot be read.
    """

    def __init__(self, max_size: int = 256):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: "OrderedDict[str, PublishSnapshot]" = OrderedDict()

    def get(self, slug: str) -> Optional[PublishSnapshot]:
        snapshot = self._entries.get(slug)
        if snapshot is not None:
            self._entries.move_to_end(slug)
        return snapshot

    def put(self, snapshot: PublishSnapshot) -> None:
        """Store a snapshot unless a newer version is already cached"""
        current = self._entries.get(snapshot.slug)
        if current is not None and current.version > snapshot.version:
            self._entries.move_to_end(snapshot.slug)
            return

        self._entries[snapshot.slug] = snapshot
        self._entries.move_to_end(snapshot.slug)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def invalidate(self, slug: str) -> None:
        self._entries.pop(slug, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, slug: str) -> bool:
        return slug in self._entries

    def __len__(self) -> int:
        return len(self._entries)
