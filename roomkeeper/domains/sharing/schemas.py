import math
from pydantic import Field, field_validator
from typing import Optional, List

from roomkeeper.core.schemas import CamelModel
from roomkeeper.domains.permissions import PermissionLevel


class ViewportSchema(CamelModel):
    x: float
    y: float
    width: float
    height: float


class LinkRequest(CamelModel):
    """Link generation for a room view"""
    page_id: Optional[str] = None
    viewport: Optional[ViewportSchema] = None
    form: str = Field("query", pattern="^(query|path)$")


class LinkResponse(CamelModel):
    room_id: str
    url: str
    semantic_url: str
    publish_url: Optional[str] = None


class AddressResponse(CamelModel):
    room_id: str
    page_id: Optional[str] = None
    page_index: Optional[int] = None
    resolved_page_id: Optional[str] = None
    viewport: Optional[ViewportSchema] = None
    form: str
    is_publish: bool = False

    @field_validator('viewport')
    @classmethod
    def drop_non_finite(cls, v):
        if v is not None and not all(math.isfinite(value) for value in (v.x, v.y, v.width, v.height)):
            return None
        return v


class ShareCreate(CamelModel):
    permission: PermissionLevel = PermissionLevel.VIEWER
    page_id: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    max_access: Optional[int] = Field(None, ge=1)


class ShareResponse(CamelModel):
    share_id: str
    room_id: str
    page_id: Optional[str] = None
    permission: PermissionLevel
    is_active: bool
    created_by: str
    created_at: int
    last_accessed: Optional[int] = None
    access_count: int
    max_access: Optional[int] = None
    description: Optional[str] = None


class ShareCreateResponse(CamelModel):
    share: ShareResponse
    token: str
    url: str


class ShareListResponse(CamelModel):
    shares: List[ShareResponse]


class ShareResolveResponse(CamelModel):
    share_id: str
    room_id: str
    page_id: Optional[str] = None
    effective_permission: PermissionLevel
    access_count: int
