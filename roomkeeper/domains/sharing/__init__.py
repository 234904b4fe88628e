from roomkeeper.domains.sharing.entities import (
    Viewport, ShareAddress, RouteKind, RoomRoute, ShareConfig
)
from roomkeeper.domains.sharing.codec import ShareAddressCodec, format_number
from roomkeeper.domains.sharing.schemas import (
    ViewportSchema, LinkRequest, LinkResponse, AddressResponse,
    ShareCreate, ShareResponse, ShareCreateResponse, ShareListResponse,
    ShareResolveResponse
)

__all__ = [
    "Viewport", "ShareAddress", "RouteKind", "RoomRoute", "ShareConfig",
    "ShareAddressCodec", "format_number",
    "ViewportSchema", "LinkRequest", "LinkResponse", "AddressResponse",
    "ShareCreate", "ShareResponse", "ShareCreateResponse", "ShareListResponse",
    "ShareResolveResponse"
]
