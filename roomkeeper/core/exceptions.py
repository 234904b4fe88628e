from typing import Optional

from fastapi import HTTPException, status


class RoomKeeperError(Exception):
    """Base domain error; carries the HTTP status it maps to at the API boundary"""

    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__

    def to_http(self) -> HTTPException:
        """Convert the error to an HTTPException"""
        headers = {"Retry-After": "1"} if self.retryable else None
        return HTTPException(status_code=self.status_code, detail=self.message, headers=headers)


class NotFoundError(RoomKeeperError):
    status_code = status.HTTP_404_NOT_FOUND


class RoomAlreadyExistsError(RoomKeeperError):
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionError(RoomKeeperError):
    status_code = status.HTTP_409_CONFLICT


class UnauthorizedError(RoomKeeperError):
    status_code = status.HTTP_403_FORBIDDEN


class MalformedAddressError(RoomKeeperError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidShareTokenError(RoomKeeperError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConcurrentModificationError(RoomKeeperError):
    status_code = status.HTTP_409_CONFLICT
    retryable = True


class RemoteSyncFailure(RoomKeeperError):
    """The durable snapshot write did not complete; the publish did not happen"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
