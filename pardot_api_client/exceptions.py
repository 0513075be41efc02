"""
Custom exception types for the Pardot API client.

These exceptions allow callers to distinguish between failures
occurring during authentication and those arising from data requests.
"""

from __future__ import annotations

from typing import Optional


class PardotError(Exception):
    """Base exception for all Pardot client errors."""


class PardotAuthError(PardotError):
    """Raised when the login request fails or returns no API key."""


class PardotAPIError(PardotError):
    """Raised when a request to the Pardot API fails or returns an error status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
