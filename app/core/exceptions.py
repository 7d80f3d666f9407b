from fastapi import status
from typing import Optional, Dict, Any


class AppBaseException(Exception):
    """
    Base exception class for all custom application exceptions.

    `code` is the short machine-readable error kind sent to clients.
    """
    def __init__(
        self,
        message: str = "An unexpected error occurred",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "server_error",
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "detail": self.message,
        }
        payload.update(self.details)
        return payload


class InvalidJSONException(AppBaseException):
    """
    Exception raised when the request body is not valid JSON.
    """
    def __init__(self, message: str = "Request body is not valid JSON"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            code="invalid_json"
        )


class MissingMessageException(AppBaseException):
    """
    Exception raised when the chat message is absent or blank.
    """
    def __init__(self, message: str = "Field 'message' is required"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            code="missing_message"
        )


class BodyTooLargeException(AppBaseException):
    """
    Exception raised when the request body exceeds the configured bound.
    The connection is closed instead of draining the rest of the body.
    """
    def __init__(self, max_bytes: int):
        super().__init__(
            message=f"Request body exceeds {max_bytes} bytes",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            code="body_too_large",
            details={"max_bytes": max_bytes},
            headers={"Connection": "close"}
        )


class RateLimitException(AppBaseException):
    """
    Exception raised when a client exceeds rate limits.
    """
    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        headers = {}
        if retry_after is not None:
            details["retry_after"] = retry_after
            headers["Retry-After"] = str(retry_after)

        super().__init__(
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            code="rate_limited",
            details=details,
            headers=headers
        )


class UnauthorizedException(AppBaseException):
    """
    Exception raised when the chat token is missing or wrong.
    """
    def __init__(self, message: str = "Missing or invalid bearer token"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="unauthorized",
            headers={"WWW-Authenticate": "Bearer"}
        )


class BadPathException(AppBaseException):
    """
    Exception raised when a static path escapes the public root.
    """
    def __init__(self, message: str = "Bad Request"):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            code="bad_path"
        )


class NotFoundException(AppBaseException):
    """
    Exception raised when a requested resource is not found.
    """
    def __init__(self, resource: str = "Resource"):
        super().__init__(
            message=f"{resource} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            code="not_found"
        )


class UpstreamTimeoutException(AppBaseException):
    """
    Exception raised when the completion API does not answer in time.
    """
    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Upstream did not respond within {timeout_seconds:g}s",
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="upstream_timeout"
        )


class UpstreamErrorException(AppBaseException):
    """
    Exception raised for failed calls to the completion API.
    """
    def __init__(
        self,
        message: str = "Upstream request failed",
        upstream_status: Optional[int] = None
    ):
        details = {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status

        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="upstream_error",
            details=details
        )
