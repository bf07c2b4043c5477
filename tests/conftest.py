"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import pytest

from launcher_tck.config import Settings
from launcher_tck.eventually import PollPolicy
from launcher_tck.launcher.local import LocalTaskLauncher
from launcher_tck.lifecycle import LaunchState
from launcher_tck.models import LaunchId, LaunchRequest, TaskStatus

FAST_POLICY = PollPolicy(max_attempts=100, pause_millis=100)


class ScriptedLauncher:
    """In-memory launcher replaying a fixed state script per launch."""

    def __init__(self, script: Iterable[LaunchState] = (LaunchState.COMPLETE,)) -> None:
        self.script = tuple(script)
        self.launched: list[LaunchRequest] = []
        self.cancelled: list[LaunchId] = []
        self.status_calls = 0
        self.reuse_ids = False
        self.cancel_lag_polls = 0
        self._cancel_lag: dict[LaunchId, int] = {}
        self._positions: dict[LaunchId, int] = {}
        self._cancel_state: dict[LaunchId, LaunchState] = {}

    def launch(self, request: LaunchRequest) -> LaunchId:
        self.launched.append(request)
        launch_id = "fixed-id" if self.reuse_ids else f"scripted-{len(self.launched)}"
        self._positions[launch_id] = 0
        return launch_id

    def status(self, launch_id: LaunchId) -> TaskStatus:
        self.status_calls += 1
        if self._cancel_lag.get(launch_id, 0) > 0:
            self._cancel_lag[launch_id] -= 1
            return TaskStatus(launch_id=launch_id, state=LaunchState.RUNNING)
        if launch_id in self._cancel_state:
            return TaskStatus(launch_id=launch_id, state=self._cancel_state[launch_id])
        if launch_id not in self._positions:
            return TaskStatus(launch_id=launch_id, state=LaunchState.UNKNOWN)
        position = self._positions[launch_id]
        self._positions[launch_id] = position + 1
        state = self.script[min(position, len(self.script) - 1)]
        return TaskStatus(launch_id=launch_id, state=state)

    def cancel(self, launch_id: LaunchId) -> None:
        self.cancelled.append(launch_id)
        if launch_id in self._positions:
            self._cancel_lag[launch_id] = self.cancel_lag_polls
            self._cancel_state[launch_id] = LaunchState.CANCELLED


@pytest.fixture()
def fast_settings() -> Settings:
    return Settings(deployment=FAST_POLICY, undeployment=FAST_POLICY, cancel_grace_seconds=2.0)


@pytest.fixture()
def tck_settings(fast_settings: Settings) -> Settings:
    """Override of the plugin fixture with short poll policies."""

    return fast_settings


@pytest.fixture()
def local_launcher() -> Iterator[LocalTaskLauncher]:
    with LocalTaskLauncher(cancel_grace_seconds=2.0) as launcher:
        yield launcher


@pytest.fixture()
def scripted_launcher() -> type[ScriptedLauncher]:
    return ScriptedLauncher
