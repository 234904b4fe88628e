from roomkeeper.domains.plaza.entities import NO_REQUEST, PlazaRequest, PlazaRequestStatus
from roomkeeper.domains.plaza.schemas import (
    PlazaRequestResponse, PlazaRequestListResponse, PlazaRequestStatusResponse
)

__all__ = [
    "NO_REQUEST", "PlazaRequest", "PlazaRequestStatus",
    "PlazaRequestResponse", "PlazaRequestListResponse", "PlazaRequestStatusResponse"
]
