"""
backend/matchdesk/errors.py

Purpose:
    Error taxonomy shared by the feed client, normalizer and reconciler.
"""

from __future__ import annotations


class MatchDeskError(Exception):
    """Base class for engine errors."""


class FeedUnavailable(MatchDeskError):
    """Feed answered non-2xx, with a malformed body, or not at all."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedRecord(MatchDeskError):
    """A single tournament or match block has an unexpected shape."""


class PersistenceFailure(MatchDeskError):
    """A store write failed for one record."""

