"""Custom exceptions for the webhook multiplexer."""


class SlackMuxException(Exception):
    """Base exception for all multiplexer errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize exception with message and optional details.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationException(SlackMuxException):
    """Mux configuration could not be loaded."""

    pass


class DeliveryException(SlackMuxException):
    """A single destination did not accept a payload.

    Collected per destination and never surfaced as an HTTP error on its own.
    """

    def __init__(
        self,
        destination: str,
        message: str,
        status_code: int | None = None,
        code: str = "",
    ) -> None:
        """Initialize delivery exception.

        Args:
            destination: Destination name
            message: Response body or transport error message
            status_code: Destination HTTP status code, if a response was received
            code: Transport error code, empty when the fault has none
        """
        super().__init__(
            message,
            details={"destination": destination, "status_code": status_code, "code": code},
        )
        self.destination = destination
        self.status_code = status_code
        self.code = code

    @property
    def description(self) -> str:
        """Human readable description reported back to the caller."""
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return f"internal error {self.code}: {self.message}"


class APIException(SlackMuxException):
    """Request-level failures answered with a bare status code."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict | None = None,
    ) -> None:
        """Initialize API exception.

        Args:
            message: Error message
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message, details)
        self.status_code = status_code


class BadRequestException(APIException):
    """Inbound body is missing or malformed."""

    def __init__(self, message: str = "Bad request", details: dict | None = None) -> None:
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, details=details)


class ForbiddenException(APIException):
    """Endpoint token missing or mismatched."""

    def __init__(self, message: str = "Forbidden", details: dict | None = None) -> None:
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403, details=details)


class NotFoundException(APIException):
    """Unknown endpoint."""

    def __init__(self, message: str = "Endpoint not found", details: dict | None = None) -> None:
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, details=details)


class DestinationNotConfiguredException(APIException):
    """A directive references a destination that is not configured."""

    def __init__(self, destination: str) -> None:
        """Initialize with 500 status code."""
        super().__init__(
            f"Destination not configured: {destination}",
            status_code=500,
            details={"destination": destination},
        )
        self.destination = destination
