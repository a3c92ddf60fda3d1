"""Application error taxonomy.

Services raise these; the handlers registered in ``src.main`` turn them into
JSON responses. Messages on authentication errors are deliberately generic so
responses never reveal whether an account exists.
"""

from typing import Any


class PersonaPilotError(Exception):
    """Base exception for all PersonaPilot errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a response body."""
        body: dict[str, Any] = {"detail": self.message}
        if self.details.get("errors"):
            body["errors"] = self.details["errors"]
        return body


class ValidationError(PersonaPilotError):
    """Input validation failed."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", errors: list[dict] | None = None):
        super().__init__(message, code="VALIDATION_FAILED", details={"errors": errors or []})


class AuthenticationError(PersonaPilotError):
    """Bad credentials or token."""

    status_code = 401


class InvalidTokenError(AuthenticationError):
    """A session token failed signature, type or expiry checks."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, code="INVALID_TOKEN")


class NotFoundError(PersonaPilotError):
    """Referenced entity does not exist."""

    status_code = 404


class ConflictError(PersonaPilotError):
    """Unique value already taken (duplicate email)."""

    status_code = 400


class UpstreamError(PersonaPilotError):
    """Error communicating with an external service."""

    status_code = 502

    def __init__(self, message: str, service: str, details: dict[str, Any] | None = None):
        super().__init__(message, details=details)
        self.service = service
        self.details["service"] = service


class OAuthError(UpstreamError):
    """An OAuth provider rejected a request or returned unusable data."""

    def __init__(self, message: str, provider: str, details: dict[str, Any] | None = None):
        super().__init__(message, service=f"oauth:{provider}", details=details)
        self.provider = provider


class EmailDeliveryError(UpstreamError):
    """The email provider failed to accept a message."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, service="email", details=details)


class ServerError(PersonaPilotError):
    """Server-side failure with a client-safe message."""

    status_code = 500


class ConfigurationError(PersonaPilotError):
    """Required configuration is missing; raised during startup."""
