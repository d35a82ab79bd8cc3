from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class CustomException(HTTPException):
    def __init__(self, status_code: int, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status_code, detail, headers)


class ValidationError(CustomException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, headers)


class UpstreamError(CustomException):
    """The data store rejected the request; its message is passed through."""

    def __init__(self, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, headers)


class AuthError(CustomException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            headers or {"WWW-Authenticate": "Bearer"},
        )


class PermissionDeniedError(CustomException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status.HTTP_403_FORBIDDEN, detail, headers)


class NotFoundError(CustomException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, detail, headers)


class ConflictError(CustomException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status.HTTP_409_CONFLICT, detail, headers)


class PayloadTooLargeError(CustomException):
    def __init__(self, detail: Any = None, headers: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail, headers)


# Domain errors. These never leave the service layer as HTTP responses.


class TranscriptionError(Exception):
    pass


class TranscriptionSubmitError(TranscriptionError):
    pass


class TranscriptionFailedError(TranscriptionError):
    pass


class TranscriptionTimeoutError(TranscriptionError):
    pass


class StorageError(Exception):
    pass


class ClipError(Exception):
    pass
