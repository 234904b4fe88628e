import math
import re
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

from roomkeeper.domains.permissions.entities import PermissionLevel


@dataclass(frozen=True)
class Viewport:
    """Visible rectangle of a page in canvas coordinates"""
    x: float
    y: float
    width: float
    height: float

    def is_finite(self) -> bool:
        return all(math.isfinite(value) for value in (self.x, self.y, self.width, self.height))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class ShareAddress:
    """A decoded deep link: room, optional page and optional viewport.

    ``page_index`` is only produced by the path form, which addresses pages by
    position. The raw index is kept as-is; ``resolved_page_id`` gives the
    ``page:{index}`` id callers use to look the page up.
    """
    room_id: str
    page_id: Optional[str] = None
    viewport: Optional[Viewport] = None
    page_index: Optional[int] = None
    form: str = "query"
    is_publish: bool = False

    @property
    def resolved_page_id(self) -> Optional[str]:
        if self.page_id is not None:
            return self.page_id
        if self.page_index is not None:
            return f"page:{self.page_index}"
        return None


class RouteKind:
    GALLERY = "gallery"
    USER = "user"
    PLAZA = "plaza"
    WORKSPACE = "workspace"
    DIRECT = "direct"


_PATH_PATTERNS = (
    (RouteKind.GALLERY, re.compile(r"^/galleries/([^/]+)/rooms/([^/]+)/?$")),
    (RouteKind.USER, re.compile(r"^/users/([^/]+)/rooms/([^/]+)/?$")),
    (RouteKind.PLAZA, re.compile(r"^/plaza/([^/]+)/?$")),
    (RouteKind.WORKSPACE, re.compile(r"^/workspace/([^/]+)/?$")),
    (RouteKind.DIRECT, re.compile(r"^/(?:rooms|r|ro)/([^/]+)/?$")),
)


@dataclass(frozen=True)
class RoomRoute:
    """Semantic route of a room, decoded once from its id or URL path.

    Room ids such as ``gallery-impressionism-east-wing`` carry their route in a
    prefix; this type makes that explicit so nothing else re-parses the id.
    """
    kind: str
    slug_parts: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def room_id(self) -> str:
        if self.kind == RouteKind.DIRECT:
            return self.slug_parts[0]
        return "-".join((self.kind,) + self.slug_parts)

    @property
    def path(self) -> str:
        if self.kind == RouteKind.GALLERY:
            return f"/galleries/{self.slug_parts[0]}/rooms/{self.slug_parts[1]}"
        if self.kind == RouteKind.USER:
            return f"/users/{self.slug_parts[0]}/rooms/{self.slug_parts[1]}"
        if self.kind == RouteKind.PLAZA:
            return f"/plaza/{self.slug_parts[0]}"
        if self.kind == RouteKind.WORKSPACE:
            return f"/workspace/{self.slug_parts[0]}"
        return f"/r/{self.slug_parts[0]}"

    @classmethod
    def from_room_id(cls, room_id: str) -> "RoomRoute":
        """Decode the route encoded in a room id prefix"""
        for kind in (RouteKind.GALLERY, RouteKind.USER):
            prefix = f"{kind}-"
            if room_id.startswith(prefix):
                # First segment is the gallery/user slug, the rest is the room slug
                parts = room_id[len(prefix):].split("-")
                if len(parts) >= 2 and parts[0]:
                    return cls(kind=kind, slug_parts=(parts[0], "-".join(parts[1:])))

        for kind in (RouteKind.PLAZA, RouteKind.WORKSPACE):
            prefix = f"{kind}-"
            if room_id.startswith(prefix) and len(room_id) > len(prefix):
                return cls(kind=kind, slug_parts=(room_id[len(prefix):],))

        return cls(kind=RouteKind.DIRECT, slug_parts=(room_id,))

    @classmethod
    def from_path(cls, path: str) -> Optional["RoomRoute"]:
        """Decode a semantic URL path; None when the path is not a room route"""
        for kind, pattern in _PATH_PATTERNS:
            match = pattern.match(path)
            if match:
                return cls(kind=kind, slug_parts=tuple(match.groups()))
        return None


class ShareConfig:
    """Owner-controlled share grant addressed by a signed token"""

    def __init__(
        self,
        share_id: str,
        room_id: str,
        permission: PermissionLevel,
        created_by: str,
        created_at: int,
        page_id: Optional[str] = None,
        is_active: bool = True,
        last_accessed: Optional[int] = None,
        access_count: int = 0,
        max_access: Optional[int] = None,
        description: Optional[str] = None
    ):
        self.share_id = share_id
        self.room_id = room_id
        self.permission = permission
        self.created_by = created_by
        self.created_at = created_at
        self.page_id = page_id
        self.is_active = is_active
        self.last_accessed = last_accessed
        self.access_count = access_count
        self.max_access = max_access
        self.description = description

    def is_exhausted(self) -> bool:
        """Whether the share has used up its access budget"""
        return self.max_access is not None and self.access_count >= self.max_access

    @classmethod
    def create_share(
        cls,
        room_id: str,
        permission: PermissionLevel,
        created_by: str,
        created_at: int,
        page_id: Optional[str] = None,
        max_access: Optional[int] = None,
        description: Optional[str] = None
    ) -> "ShareConfig":
        return cls(
            share_id=uuid.uuid4().hex,
            room_id=room_id,
            permission=permission,
            created_by=created_by,
            created_at=created_at,
            page_id=page_id,
            max_access=max_access,
            description=description
        )

    def __repr__(self) -> str:
        return f"ShareConfig(share_id={self.share_id}, room={self.room_id}, permission={self.permission.value})"

