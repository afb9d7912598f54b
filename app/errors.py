"""
Error types shared by the REST layer and the sync client.
"""
from __future__ import annotations

from typing import Optional


class TrackerError(Exception):
    """Base class for declaration tracker errors."""


class ValidationError(TrackerError):
    """Required fields missing or malformed on create/update (HTTP 400)."""


class IntegrityError(TrackerError):
    """A declaration would be stored without a resolvable ledger type (HTTP 500)."""


class TransientNetworkError(TrackerError):
    """Any request failure as seen from the client."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
