from roomkeeper.domains.publishing.entities import PublishSnapshot, count_pages_and_shapes
from roomkeeper.domains.publishing.cache import SnapshotCache
from roomkeeper.domains.publishing.schemas import (
    SnapshotWrite, SnapshotMetadata, SnapshotResponse,
    SnapshotHistoryResponse, SnapshotInvalidateResponse
)

__all__ = [
    "PublishSnapshot", "count_pages_and_shapes", "SnapshotCache",
    "SnapshotWrite", "SnapshotMetadata", "SnapshotResponse",
    "SnapshotHistoryResponse", "SnapshotInvalidateResponse"
]
