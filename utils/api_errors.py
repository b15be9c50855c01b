"""Exception types rendered as `{success: false, error, details}` responses."""

from __future__ import annotations


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int = 400, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ValidationError(APIError):
    """Raised when request input is missing or malformed."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message, status_code=400, details=details)


class PayloadTooLargeError(APIError):
    def __init__(self, message: str, details: str | None = None):
        super().__init__(message, status_code=413, details=details)


class UnsupportedMediaError(APIError):
    def __init__(self, message: str, details: str | None = None):
        super().__init__(message, status_code=415, details=details)


class SessionExpiredError(APIError):
    """Raised when a session id does not resolve; the client must rescan."""

    def __init__(self, message: str = "Session not found or expired. Please scan the product again."):
        super().__init__(message, status_code=404)


class LabelUnreadableError(APIError):
    """Raised when the model could not read the image as a food label."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message, status_code=422, details=details)


class UpstreamServiceError(APIError):
    """Raised when an external model or speech call fails."""

    def __init__(self, message: str, details: str | None = None, status_code: int = 500):
        super().__init__(message, status_code=status_code, details=details)
