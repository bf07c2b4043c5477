"""Task launcher interface and the local reference implementation."""

from launcher_tck.launcher.base import LaunchError, StatusQueryError, TaskLauncher
from launcher_tck.launcher.local import LocalTaskLauncher

__all__ = [
    "LaunchError",
    "LocalTaskLauncher",
    "StatusQueryError",
    "TaskLauncher",
]
