"""Exception types raised by OrbWatch."""

from __future__ import annotations


class OrbWatchError(Exception):
    """Base class for all OrbWatch errors."""


class TransportError(OrbWatchError):
    """A feed was unreachable or answered with a non-success status.

    Attributes:
        url: The requested URL.
        status_code: HTTP status, or None if no response was received.
    """

    def __init__(self, message: str, *, url: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MissingCredentialError(OrbWatchError):
    """No bearer credential is available, so no request was issued."""
