"""Exceptions raised by the last-commenter renderer."""

from typing import Optional


class LastCommenterError(Exception):
    """Base class for renderer errors."""


class IdentifierMissing(LastCommenterError):
    """No row identifier could be derived from any source."""


class ListClientError(LastCommenterError):
    """A list API request failed (transport, HTTP status, or undecodable body)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
