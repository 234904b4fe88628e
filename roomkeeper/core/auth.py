from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roomkeeper.core.config import Settings, get_settings
from roomkeeper.core.security import verify_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Requester:
    """Verified identity supplied by the identity provider"""

    user_id: str
    user_name: Optional[str] = None
    is_admin: bool = False


async def get_optional_requester(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    app_settings: Settings = Depends(get_settings),
) -> Optional[Requester]:
    """Resolve the requester from the bearer token; guests resolve to None"""
    if credentials is None:
        return None

    payload = verify_token(credentials.credentials, app_settings)
    if not payload or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = str(payload["sub"])
    return Requester(user_id=user_id, user_name=payload.get("name"), is_admin=app_settings.is_admin(user_id))


async def get_current_requester(
    requester: Optional[Requester] = Depends(get_optional_requester),
) -> Requester:
    if requester is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return requester
