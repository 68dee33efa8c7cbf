"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationException(AppException):
    """Missing or malformed input."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class UnauthorizedException(AppException):
    """Missing or invalid credential."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Wrong role or not the owner of the record."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class NotFoundException(AppException):
    """
    No matching record.

    Also raised where an authorization failure is deliberately reported as a
    missing record, so unauthorized callers cannot probe for existence.
    """

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class InvalidTransitionException(AppException):
    """Requested status change is not allowed from the current status."""

    def __init__(
        self,
        current_status: str | None = None,
        requested_status: str | None = None,
        message: str | None = None,
    ):
        """Initialize with 400 status code."""
        self.current_status = current_status
        self.requested_status = requested_status
        if message is None:
            message = f"Cannot change appointment status from '{current_status}' to '{requested_status}'"
        super().__init__(message, status_code=400)


class UpstreamUnavailableException(AppException):
    """A collaborating service could not be reached or answered badly."""

    def __init__(self, message: str = "Upstream service unavailable"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)


class InternalErrorException(AppException):
    """Unexpected failure."""

    def __init__(self, message: str = "Internal server error"):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500)
