"""Subprocess-based reference task launcher."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from types import TracebackType
from uuid import uuid4

from launcher_tck.launcher.base import LaunchError
from launcher_tck.lifecycle import LaunchState, is_terminal
from launcher_tck.models import LaunchId, LaunchRequest, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _LaunchEntry:
    launch_id: LaunchId
    name: str
    process: subprocess.Popen[bytes]
    cancel_requested: bool = False
    final_state: LaunchState | None = None
    exit_code: int | None = None


class LocalTaskLauncher:
    """Run each task as a child process of the current interpreter."""

    def __init__(self, *, cancel_grace_seconds: float = 5.0) -> None:
        self.cancel_grace_seconds = cancel_grace_seconds
        self._lock = threading.Lock()
        self._launches: dict[LaunchId, _LaunchEntry] = {}

    def launch(self, request: LaunchRequest) -> LaunchId:
        argv = build_argv(request)
        launch_id = f"{request.definition.name}-{uuid4().hex}"
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                env=os.environ.copy(),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as error:
            raise LaunchError(
                f"Task executable not found: {argv[0]}",
                transient=False,
            ) from error
        except OSError as error:
            raise LaunchError(f"Task failed to start: {error}", transient=True) from error

        with self._lock:
            self._launches[launch_id] = _LaunchEntry(
                launch_id=launch_id,
                name=request.definition.name,
                process=process,
            )
        logger.info("Launched %s as %s (pid=%d)", request.definition.name, launch_id, process.pid)
        return launch_id

    def status(self, launch_id: LaunchId) -> TaskStatus:
        with self._lock:
            entry = self._launches.get(launch_id)
            if entry is None:
                return TaskStatus(launch_id=launch_id, state=LaunchState.UNKNOWN)
            state = _resolve_state(entry)
            attributes = {"pid": str(entry.process.pid)}
            if entry.exit_code is not None:
                attributes["exit_code"] = str(entry.exit_code)
        return TaskStatus(launch_id=launch_id, state=state, attributes=attributes)

    def cancel(self, launch_id: LaunchId) -> None:
        with self._lock:
            entry = self._launches.get(launch_id)
            if entry is None:
                logger.debug("Cancel ignored for unknown launch %s", launch_id)
                return
            if is_terminal(_resolve_state(entry)):
                logger.debug("Cancel ignored for finished launch %s", launch_id)
                return
            entry.cancel_requested = True
            process = entry.process
            name = entry.name

        logger.info("Cancelling %s as %s (pid=%d)", name, launch_id, process.pid)
        _terminate_process(process, grace_seconds=self.cancel_grace_seconds)

    def shutdown(self) -> None:
        """Cancel every launch that is still running."""

        with self._lock:
            launch_ids = list(self._launches)
        for launch_id in launch_ids:
            self.cancel(launch_id)

    def __enter__(self) -> LocalTaskLauncher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.shutdown()


def build_argv(request: LaunchRequest) -> list[str]:
    """Render the resource command with properties and extra arguments appended."""

    if not request.resource.command:
        raise LaunchError("Task resource command is empty.", transient=False)
    argv = list(request.resource.command)
    argv.extend(f"--{key}={value}" for key, value in request.definition.properties.items())
    argv.extend(f"--{key}={value}" for key, value in request.deployment_properties.items())
    argv.extend(request.command_line_args)
    return argv


def _resolve_state(entry: _LaunchEntry) -> LaunchState:
    if entry.final_state is not None:
        return entry.final_state

    returncode = entry.process.poll()
    if returncode is None:
        return LaunchState.RUNNING

    entry.exit_code = returncode
    if entry.cancel_requested:
        entry.final_state = LaunchState.CANCELLED
    elif returncode == 0:
        entry.final_state = LaunchState.COMPLETE
    else:
        entry.final_state = LaunchState.FAILED
    return entry.final_state


def _terminate_process(process: subprocess.Popen[bytes], *, grace_seconds: float) -> None:
    try:
        process.terminate()
    except OSError:
        return
    try:
        process.wait(timeout=grace_seconds)
    except subprocess.TimeoutExpired:
        try:
            process.kill()
        except OSError:
            return
        process.wait(timeout=grace_seconds)
