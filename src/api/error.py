from fastapi import status
from src.libs.result import Error

# Use case error codes surfaced to clients; anything else is a server error
ERROR_STATUS = {
    "TIER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "MEMBERSHIP_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ALREADY_SUBSCRIBED": status.HTTP_409_CONFLICT,
    "INVALID_STATE_TRANSITION": status.HTTP_409_CONFLICT,
    "NOT_PENDING": status.HTTP_409_CONFLICT,
    "NOT_ACTIVE": status.HTTP_409_CONFLICT,
    "USAGE_LIMIT_REACHED": status.HTTP_403_FORBIDDEN,
    "PERSISTENCE_CONFLICT": status.HTTP_409_CONFLICT,
    "PAYMENT_GATEWAY_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "PAYMENT_REJECTED": status.HTTP_502_BAD_GATEWAY,
    "INVALID_SIGNATURE": status.HTTP_401_UNAUTHORIZED,
}


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


def raise_for_error(error: Error):
    """Translate a use case error code into the HTTP error response"""
    status_code = ERROR_STATUS.get(error.code)
    if status_code is None:
        raise ServerError(error)
    raise ClientError(error, status_code=status_code)
