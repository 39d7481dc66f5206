"""Domain exceptions for the workdesk proxy.

Every failure a handler can report derives from WorkdeskException. The
presentation layer maps them to the response envelope in
workdesk.core.exception_handlers; nothing here knows about HTTP.
"""

from typing import Any


class WorkdeskException(Exception):
    """Base exception for all workdesk errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. upstream detail, field).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    @property
    def detail(self) -> Any:
        """Most specific detail for the caller (falls back to the message)."""
        return self.details.get("detail", self.message)

    def to_dict(self) -> dict[str, Any]:
        """Error payload for the response envelope."""
        return {"message": self.message, "detail": self.detail, "code": self.error_code}


class NotAuthenticatedException(WorkdeskException):
    """Raised when the session token is missing, unknown or expired."""

    def __init__(self) -> None:
        super().__init__(
            "User Not Authenticated",
            "NOT_AUTHENTICATED",
            {"detail": "Required to provide Auth information"},
        )


class InvalidCredentialsException(WorkdeskException):
    """Raised when login fails (wrong password, inactive or unknown user)."""

    def __init__(self, detail: str = "Invalid credentials") -> None:
        super().__init__("User Not Authorized", "INVALID_CREDENTIALS", {"detail": detail})


class SessionStoreUnavailableException(WorkdeskException):
    """Raised when a new session could not be written to the session store."""

    def __init__(self) -> None:
        super().__init__(
            "Session store unavailable",
            "SESSION_STORE_UNAVAILABLE",
            {"detail": "Login succeeded but the session could not be saved; try again"},
        )


class UpstreamError(WorkdeskException):
    """Raised when the upstream record store fails a call.

    Attributes:
        status_code: Upstream HTTP status, or None for network-level failures.
        raw: Raw upstream response body (may be empty).
    """

    def __init__(
        self,
        detail: str,
        status_code: int | None = None,
        raw: str = "",
    ) -> None:
        self.status_code = status_code
        self.raw = raw
        super().__init__(
            detail,
            "UPSTREAM_ERROR",
            {"detail": detail, "status_code": status_code},
        )

    @property
    def retryable(self) -> bool:
        """Network failures and 5xx are transient; 4xx never are."""
        return self.status_code is None or self.status_code >= 500


class ActivityFetchFailedException(WorkdeskException):
    """Raised when either history feed cannot be fetched (no partial narrative)."""

    def __init__(self, detail: str) -> None:
        super().__init__("Activity fetch failed", "ACTIVITY_FETCH_FAILED", {"detail": detail})


class UpdateFailedException(WorkdeskException):
    """Raised when a record update step fails.

    Attributes:
        outcome: UpdateOutcome describing which writes were applied.
    """

    def __init__(self, detail: str, outcome: Any = None) -> None:
        self.outcome = outcome
        details: dict[str, Any] = {"detail": detail}
        if outcome is not None:
            details["steps"] = outcome.to_dict()
        super().__init__("Update failed", "UPDATE_FAILED", details)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if "steps" in self.details:
            payload["steps"] = self.details["steps"]
        return payload


class ValidationException(WorkdeskException):
    """Raised when input validation fails (e.g. invalid table or identifier)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details: dict[str, Any] = {"detail": message}
        if field:
            details["field"] = field
        super().__init__("Bad request", "VALIDATION_ERROR", details)


class ResourceNotFoundException(WorkdeskException):
    """Raised when an upstream record does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type.capitalize()} not found",
            "RESOURCE_NOT_FOUND",
            {"detail": f"No {resource_type} with id {resource_id}", "resource_id": resource_id},
        )


class RequestCancelledException(WorkdeskException):
    """Raised inside a request whose client went away before completion."""

    def __init__(self, reason: str = "client disconnected") -> None:
        super().__init__("Request cancelled", "REQUEST_CANCELLED", {"detail": reason})
