from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for errors raised inside the dashboard core."""


class FetchError(DashboardError):
    """Every candidate URL for the sheet failed."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None, status: Optional[int] = None):
        super().__init__(message)
        self.last_error = last_error
        self.status = status


class ParseError(DashboardError):
    """The sheet contained no usable rows."""


class MutationRemoteError(DashboardError):
    """The mutation endpoint rejected or failed a request."""


class ExtractionError(DashboardError):
    """The generation backend failed or returned nothing usable."""
