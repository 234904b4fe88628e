import uuid
from enum import Enum
from typing import Optional

# Status reported for a room that never asked to be listed
NO_REQUEST = "none"


class PlazaRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PlazaRequest:
    """An owner's request to list a published room on the plaza, reviewed by an administrator"""

    def __init__(
        self,
        request_id: str,
        room_id: str,
        room_name: str,
        user_id: str,
        submitted_at: int,
        status: PlazaRequestStatus = PlazaRequestStatus.PENDING,
        user_name: Optional[str] = None,
        reviewed_at: Optional[int] = None,
        reviewed_by: Optional[str] = None
    ):
        self.request_id = request_id
        self.room_id = room_id
        self.room_name = room_name
        self.user_id = user_id
        self.user_name = user_name
        self.status = status
        self.submitted_at = submitted_at
        self.reviewed_at = reviewed_at
        self.reviewed_by = reviewed_by

    @property
    def is_pending(self) -> bool:
        return self.status == PlazaRequestStatus.PENDING

    @classmethod
    def create_request(
        cls,
        room_id: str,
        room_name: str,
        user_id: str,
        submitted_at: int,
        user_name: Optional[str] = None
    ) -> "PlazaRequest":
        return cls(
            request_id=uuid.uuid4().hex,
            room_id=room_id,
            room_name=room_name,
            user_id=user_id,
            user_name=user_name,
            submitted_at=submitted_at
        )

    def __repr__(self) -> str:
        return f"PlazaRequest(request_id={self.request_id}, room={self.room_id}, status={self.status.value})"
