"""Core exception classes for the application."""


class StoreError(Exception):
    """Raised when a task store operation fails.

    Attributes:
        http_status: HTTP status of the failed response, or None when the
            request never produced one
        message: Human readable failure description
    """

    def __init__(self, message: str, http_status: int | None = None):
        super().__init__(message)
        self.message = message
        self.http_status = http_status

    def __str__(self) -> str:
        if self.http_status is None:
            return self.message
        return f"HTTP {self.http_status}: {self.message}"


class NetworkError(StoreError):
    """Raised when the backend cannot be reached."""


class HttpError(StoreError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, http_status: int, message: str):
        super().__init__(message, http_status=http_status)


class NotFoundError(HttpError):
    """Raised when a resource is not found."""

    def __init__(self, message: str, http_status: int = 404):
        super().__init__(http_status, message)


class ConflictError(HttpError):
    """Raised when an update carries a stale version."""

    def __init__(self, message: str, http_status: int = 409):
        super().__init__(http_status, message)


class ValidationError(Exception):
    """Raised when validation fails."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class InvalidTransitionError(Exception):
    """Raised when a view event is not defined for the current view."""
