from pydantic import Field
from typing import Optional, List, Dict, Any

from roomkeeper.core.schemas import CamelModel


class SnapshotWrite(CamelModel):
    content: Dict[str, Any]


class SnapshotMetadata(CamelModel):
    slug: str
    room_id: str
    version: int
    published_by_id: str
    published_by_name: Optional[str] = None
    published_at: int
    page_count: int
    shape_count: int


class SnapshotResponse(SnapshotMetadata):
    content: Dict[str, Any]


class SnapshotHistoryResponse(CamelModel):
    slug: str
    versions: List[SnapshotMetadata] = Field(default_factory=list)


class SnapshotInvalidateResponse(CamelModel):
    slug: str
    removed: int
