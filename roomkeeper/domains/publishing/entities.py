from typing import Optional, Dict, Any, Iterable, Tuple

from roomkeeper.core.clock import now_millis


def _records(content: Any) -> Iterable[Any]:
    """Records of a whiteboard document, whichever envelope it arrives in"""
    if isinstance(content, dict):
        if isinstance(content.get("records"), list):
            return content["records"]
        store = content.get("store", content)
        if isinstance(store, dict):
            return store.values()
    if isinstance(content, list):
        return content
    return ()


def count_pages_and_shapes(content: Any) -> Tuple[int, int]:
    pages = shapes = 0
    for record in _records(content):
        if not isinstance(record, dict):
            continue
        if record.get("typeName") == "page":
            pages += 1
        elif record.get("typeName") == "shape":
            shapes += 1
    return pages, shapes


class PublishSnapshot:
    """Immutable, slug-addressed copy of a room's content at publish time"""

    def __init__(
        self,
        slug: str,
        room_id: str,
        version: int,
        content: Dict[str, Any],
        published_by_id: str,
        published_by_name: Optional[str] = None,
        published_at: Optional[int] = None,
        page_count: Optional[int] = None,
        shape_count: Optional[int] = None
    ):
        self.slug = slug
        self.room_id = room_id
        self.version = version
        self.content = content
        self.published_by_id = published_by_id
        self.published_by_name = published_by_name
        self.published_at = published_at or now_millis()
        if page_count is None or shape_count is None:
            page_count, shape_count = count_pages_and_shapes(content)
        self.page_count = page_count
        self.shape_count = shape_count

    @classmethod
    def create_snapshot(
        cls,
        slug: str,
        room_id: str,
        version: int,
        content: Dict[str, Any],
        published_by_id: str,
        published_by_name: Optional[str] = None,
        published_at: Optional[int] = None
    ) -> "PublishSnapshot":
        return cls(
            slug=slug,
            room_id=room_id,
            version=version,
            content=content,
            published_by_id=published_by_id,
            published_by_name=published_by_name,
            published_at=published_at
        )

    def __repr__(self) -> str:
        return f"PublishSnapshot(slug={self.slug}, room={self.room_id}, version={self.version})"
