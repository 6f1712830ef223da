"""SpongeWallet SDK exceptions."""

from __future__ import annotations


class SpongeError(Exception):
    """Base exception for everything raised by the SDK."""


class SpongeApiError(SpongeError):
    """Raised when the SpongeWallet API answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code from the API.
        error_code: Machine-readable error code (``unknown_error`` when the
            body could not be parsed).
        message: Human-readable error message.
    """

    def __init__(self, status_code: int, error_code: str, message: str) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.status_code!r}, "
            f"error_code={self.error_code!r}, message={self.message!r})"
        )


class AuthenticationError(SpongeApiError):
    """Raised when the API key is invalid, expired or missing (401)."""


class RateLimitError(SpongeApiError):
    """Raised when the API rate limit is exceeded (429)."""


class SpongeValidationError(SpongeError, ValueError):
    """Raised when input is rejected locally, before any request is sent."""


class DeviceFlowError(SpongeError):
    """Raised when device flow authentication fails."""


class AccessDeniedError(DeviceFlowError):
    """Raised when the user denies the device authorization request."""

    def __init__(self, message: str = "Access denied by user") -> None:
        super().__init__(message)


class DeviceCodeExpiredError(DeviceFlowError):
    """Raised when the device code expires before it was approved."""

    def __init__(self, message: str = "Device code expired. Please try again.") -> None:
        super().__init__(message)


class AgentResolutionError(SpongeError):
    """Raised when no agent can be resolved for the API key in use."""
