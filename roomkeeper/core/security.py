from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from roomkeeper.core.config import Settings, settings


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    app_settings: Optional[Settings] = None
) -> str:
    """Create an identity access token (issued by the identity provider in production)"""
    app_settings = app_settings or settings
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=15)  # 15 minutes by default

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, app_settings.jwt_secret, algorithm=app_settings.jwt_algorithm)
    return encoded_jwt


def verify_token(token: str, app_settings: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    """Verify an access token and return its claims"""
    app_settings = app_settings or settings
    try:
        payload = jwt.decode(token, app_settings.jwt_secret, algorithms=[app_settings.jwt_algorithm])
        return payload
    except JWTError:
        return None


def create_share_token(
    room_id: str,
    share_id: str,
    permission: str,
    page_id: Optional[str] = None,
    issued_at: Optional[int] = None,
    app_settings: Optional[Settings] = None
) -> str:
    """Sign a share grant.

    Share grants do not expire on their own; the owner revokes them by
    deactivating the share config the token points to.
    """
    app_settings = app_settings or settings
    claims: Dict[str, Any] = {
        "r": room_id,
        "p": permission,
        "s": share_id,
        "iat": issued_at if issued_at is not None else int(datetime.now(timezone.utc).timestamp()),
        "typ": "share",
    }
    if page_id:
        claims["pg"] = page_id
    return jwt.encode(claims, app_settings.share_secret, algorithm=app_settings.jwt_algorithm)


def verify_share_token(token: str, app_settings: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    """Verify a share token signature and return its claims"""
    app_settings = app_settings or settings
    try:
        payload = jwt.decode(token, app_settings.share_secret, algorithms=[app_settings.jwt_algorithm])
    except JWTError:
        return None

    if payload.get("typ") != "share" or not payload.get("r") or not payload.get("s"):
        return None

    return payload
