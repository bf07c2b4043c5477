"""Task launcher interface consumed by the conformance harness."""

from __future__ import annotations

from typing import Protocol

from launcher_tck.models import LaunchId, LaunchRequest, TaskStatus


class LaunchError(RuntimeError):
    """Launch request could not be provisioned, with retryability hint."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class StatusQueryError(RuntimeError):
    """Status query itself failed, e.g. the launcher backend is unreachable."""


class TaskLauncher(Protocol):
    """Protocol implemented by launchers under test."""

    def launch(self, request: LaunchRequest) -> LaunchId:
        """Start one task and return its fresh launch id."""

    def status(self, launch_id: LaunchId) -> TaskStatus:
        """Return the current status; ``unknown`` for ids never launched."""

    def cancel(self, launch_id: LaunchId) -> None:
        """Request cancellation; idempotent and safe for unknown or finished ids."""
