"""Error taxonomy for the guild checker.

Pre-run errors (index, output target) abort the run. Per-task errors are
absorbed at the task boundary and counted as failures.
"""

from __future__ import annotations


class CheckerError(Exception):
    """Base class for guild checker failures."""


class IndexLoadError(CheckerError):
    """Raised when the index file cannot be read or is malformed."""


class LookupTransportError(CheckerError):
    """Raised when a lookup request fails below the HTTP status level."""

    def __init__(self, identifier: str, message: str) -> None:
        super().__init__(f"lookup for {identifier} failed: {message}")
        self.identifier = identifier


class PermitPoolClosed(CheckerError):
    """Raised when acquiring from a permit pool that has been torn down."""
