from fastapi import status
from libs.result import Error

STATUS_BY_CODE = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "INVALID_TOKEN": status.HTTP_401_UNAUTHORIZED,
    "SESSION_REVOKED": status.HTTP_401_UNAUTHORIZED,
    "SESSION_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
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


def error_for(error: Error) -> Exception:
    """ClientError for known client-facing codes, ServerError otherwise."""
    status_code = STATUS_BY_CODE.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(error, status_code=status_code)
