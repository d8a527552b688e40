"""Error types raised by the gateway, fetchers, forms and live controls."""

from __future__ import annotations

from typing import Any


class SaloError(Exception):
    """Base class for every error the admin client raises on purpose."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GatewayError(SaloError):
    """A request to the backend did not produce a usable response."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        path: str | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.path = path
        self.payload = payload


class TransportError(GatewayError):
    """The request failed before an HTTP status was received."""


class UnauthorizedError(GatewayError):
    """HTTP 401. The stored token has been cleared."""


class NotFoundError(GatewayError):
    """HTTP 404."""


class ApiError(GatewayError):
    """Any other error status; ``message`` is the server's message."""


class EnvelopeError(SaloError):
    """Response body is not a valid ``{success, data, message}`` envelope."""

    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class FormError(SaloError):
    """Client-side validation failed; nothing was sent."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) if errors else "Invalid form")
        self.errors = errors


class TransitionError(SaloError):
    """Lifecycle command not available from the event's current status."""

    def __init__(self, action: str, status: str) -> None:
        super().__init__(f"Cannot {action} an event that is {status.replace('_', ' ')}")
        self.action = action
        self.status = status
