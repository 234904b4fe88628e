import logging
from typing import Optional, List, Tuple
from urllib.parse import quote, urlsplit

from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.clock import now_millis
from roomkeeper.core.config import Settings, settings
from roomkeeper.core.exceptions import (
    InvalidShareTokenError, MalformedAddressError, NotFoundError
)
from roomkeeper.core.security import create_share_token, verify_share_token
from roomkeeper.db.repositories.room_repository import RoomDirectory
from roomkeeper.db.repositories.share_repository import ShareConfigRepository
from roomkeeper.domains.permissions import PermissionLevel, PermissionPolicy
from roomkeeper.domains.rooms.entities import Room
from roomkeeper.domains.rooms.services import AccessEvaluator
from roomkeeper.domains.sharing.codec import ShareAddressCodec, PATH_FORM
from roomkeeper.domains.sharing.entities import ShareAddress, ShareConfig, RoomRoute, Viewport

logger = logging.getLogger(__name__)

SEMANTIC_FORM = "semantic"


class ShareResolution:
    """A verified share token together with what it grants"""

    def __init__(self, share: ShareConfig, room: Room, effective_permission: PermissionLevel):
        self.share = share
        self.room = room
        self.effective_permission = effective_permission

    @property
    def page_id(self) -> Optional[str]:
        return self.share.page_id


class ShareLinkService:
    """Builds and resolves share links; manages owner-issued share configs"""

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        base_url: Optional[str] = None,
        app_settings: Optional[Settings] = None
    ):
        self.settings = app_settings or settings
        self.base_url = (base_url or self.settings.public_base_url).rstrip("/")
        if session is not None:
            self.directory = RoomDirectory(session)
            self.share_repository = ShareConfigRepository(session)

    def room_link(
        self,
        room_id: str,
        page_id: Optional[str] = None,
        viewport: Optional[Viewport] = None,
        form: str = "query"
    ) -> str:
        """Absolute link to a room view"""
        if form == PATH_FORM:
            return self.base_url + ShareAddressCodec.encode_path(room_id, page_id, viewport)
        return self.base_url + ShareAddressCodec.encode_query(room_id, page_id, viewport)

    def publish_link(
        self,
        slug: str,
        page_id: Optional[str] = None,
        viewport: Optional[Viewport] = None
    ) -> str:
        """Absolute link to a published snapshot"""
        return self.base_url + ShareAddressCodec.encode_query(slug, page_id, viewport, prefix="/p")

    def semantic_link(self, room_id: str) -> str:
        return self.base_url + RoomRoute.from_room_id(room_id).path

    def resolve_address(self, address: str) -> ShareAddress:
        """Decode a query-form, path-form or semantic address"""
        decoded = ShareAddressCodec.decode(address)
        if decoded is not None:
            return decoded

        try:
            path = urlsplit(address or "").path
        except ValueError:
            path = ""
        route = RoomRoute.from_path(path)
        if route is not None:
            return ShareAddress(room_id=route.room_id, form=SEMANTIC_FORM)

        raise MalformedAddressError(f"Not a room address: {address!r}")

    async def create_share(
        self,
        room_id: str,
        requester_id: Optional[str],
        permission: PermissionLevel,
        page_id: Optional[str] = None,
        description: Optional[str] = None,
        max_access: Optional[int] = None
    ) -> Tuple[ShareConfig, str, str]:
        """Issue a share grant; returns the config, its signed token and a link carrying it"""
        room = await self._get_room(room_id)
        AccessEvaluator.require_owner(room, requester_id)

        granted = PermissionPolicy.constrain(permission, room.max_permission, room.history_locked)
        share = ShareConfig.create_share(
            room_id=room.id,
            permission=granted,
            created_by=requester_id,
            created_at=now_millis(),
            page_id=page_id,
            max_access=max_access,
            description=description
        )
        share = await self.share_repository.create(share)

        token = create_share_token(room.id, share.share_id, granted.value, page_id, app_settings=self.settings)
        link = self.room_link(room.id, page_id)
        link += ("&" if "?" in link else "?") + "t=" + quote(token, safe="")

        logger.info("Share %s created for room %s at %s", share.share_id, room.id, granted.value)
        return share, token, link

    async def resolve_share(self, token: str) -> ShareResolution:
        """Verify a share token and count one access against its config"""
        claims = verify_share_token(token, self.settings)
        if not claims:
            raise InvalidShareTokenError("Share token is invalid")

        share = await self.share_repository.get(claims["s"])
        if not share or share.room_id != claims["r"]:
            raise InvalidShareTokenError("Share token does not match any share")
        if not share.is_active:
            raise InvalidShareTokenError("Share has been deactivated")
        if share.is_exhausted():
            raise InvalidShareTokenError("Share has reached its access limit")

        room = await self._get_room(share.room_id)

        if not await self.share_repository.record_access(share.share_id, now_millis()):
            raise InvalidShareTokenError("Share is no longer available")
        share = await self.share_repository.get(share.share_id)

        effective = PermissionPolicy.constrain(share.permission, room.max_permission, room.history_locked)
        return ShareResolution(share=share, room=room, effective_permission=effective)

    async def list_shares(self, room_id: str, requester_id: Optional[str]) -> List[ShareConfig]:
        room = await self._get_room(room_id)
        AccessEvaluator.require_owner(room, requester_id)
        return await self.share_repository.list_by_room(room_id)

    async def deactivate_share(self, share_id: str, requester_id: Optional[str]) -> ShareConfig:
        share = await self.share_repository.get(share_id)
        if not share:
            raise NotFoundError(f"Share {share_id} not found")

        room = await self._get_room(share.room_id)
        AccessEvaluator.require_owner(room, requester_id)

        await self.share_repository.deactivate(share_id)
        logger.info("Share %s deactivated", share_id)
        return await self.share_repository.get(share_id)

    async def _get_room(self, room_id: str) -> Room:
        room = await self.directory.get(room_id)
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        return room
