"""Exceptions raised by zkdash."""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for zkdash errors."""


class UsageError(DashboardError):
    """An operation was invoked on something it does not apply to."""


class TargetUnavailableError(UsageError):
    """A file link points to a path that no longer exists."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Target not available: {path}")
        self.path = path
