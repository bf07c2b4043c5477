"""Record set of launches made during a test, for teardown cleanup."""

from __future__ import annotations

import logging
import threading

from launcher_tck.launcher.base import TaskLauncher
from launcher_tck.models import LaunchId, LaunchRecord

logger = logging.getLogger(__name__)


class CleanupError(RuntimeError):
    """One or more recorded launches could not be cleaned up."""

    def __init__(self, failures: list[tuple[LaunchRecord, Exception]]) -> None:
        summary = "; ".join(f"{record.launch_id}: {error}" for record, error in failures)
        super().__init__(f"Failed to clean up {len(failures)} launch(es): {summary}")
        self.failures = failures


class LaunchRecorder:
    """Thread-safe list of launch records, in launch order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[LaunchRecord] = []

    @property
    def records(self) -> list[LaunchRecord]:
        with self._lock:
            return list(self._records)

    def record(self, launch_id: LaunchId, name: str) -> LaunchId:
        with self._lock:
            self._records.append(LaunchRecord(launch_id=launch_id, name=name))
        return launch_id

    def cleanup(self, launcher: TaskLauncher) -> None:
        """Cancel recorded launches that have not finished, then forget them all."""

        with self._lock:
            pending = list(self._records)
            self._records.clear()

        failures: list[tuple[LaunchRecord, Exception]] = []
        for record in pending:
            try:
                if launcher.status(record.launch_id).terminal:
                    continue
                logger.info("Cleaning up %s (%s)", record.name, record.launch_id)
                launcher.cancel(record.launch_id)
            except Exception as error:  # noqa: BLE001
                failures.append((record, error))
        if failures:
            raise CleanupError(failures)
