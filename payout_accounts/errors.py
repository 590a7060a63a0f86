"""
API error taxonomy.

Client errors (400/401/404/409) carry a message that is safe to show to the
caller verbatim. UpstreamError wraps failures of a provider call the primary
operation depends on.
"""


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(ApiError):
    status_code = 400


class UnauthorizedError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


class ConcurrentModificationError(ConflictError):
    """The account changed between our read and our write (version mismatch)."""


class UpstreamError(ApiError):
    status_code = 500
