from typing import Optional, List

from roomkeeper.core.schemas import CamelModel
from roomkeeper.domains.plaza.entities import PlazaRequestStatus


class PlazaRequestResponse(CamelModel):
    request_id: str
    room_id: str
    room_name: str
    user_id: str
    user_name: Optional[str] = None
    status: PlazaRequestStatus
    submitted_at: int
    reviewed_at: Optional[int] = None
    reviewed_by: Optional[str] = None


class PlazaRequestListResponse(CamelModel):
    requests: List[PlazaRequestResponse]


class PlazaRequestStatusResponse(CamelModel):
    room_id: str
    # "none" when the room has never been submitted
    status: str
