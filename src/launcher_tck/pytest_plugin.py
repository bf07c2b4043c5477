"""pytest fixtures for running the conformance scenarios against any launcher.

Register automatically through the ``pytest11`` entry point. Override
``task_launcher`` (and ``test_application`` when the launcher needs a different
artifact) in your own ``conftest.py``::

    @pytest.fixture()
    def task_launcher():
        return MyKubernetesTaskLauncher(...)

    def test_simple_launch(scenario_runner):
        scenario_runner.simple_launch()
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from launcher_tck.config import Settings
from launcher_tck.eventually import CancellationToken
from launcher_tck.launcher.base import TaskLauncher
from launcher_tck.launcher.local import LocalTaskLauncher
from launcher_tck.models import AppResource
from launcher_tck.records import LaunchRecorder
from launcher_tck.scenarios import ScenarioRunner


@pytest.fixture()
def tck_settings() -> Settings:
    return Settings.from_env()


@pytest.fixture()
def task_launcher(tck_settings: Settings) -> Iterator[TaskLauncher]:
    with LocalTaskLauncher(cancel_grace_seconds=tck_settings.cancel_grace_seconds) as launcher:
        yield launcher


@pytest.fixture()
def test_application(tck_settings: Settings) -> AppResource:
    return tck_settings.test_application()


@pytest.fixture()
def launch_recorder(task_launcher: TaskLauncher) -> Iterator[LaunchRecorder]:
    """Recorder whose launches are cancelled at teardown if still running."""

    recorder = LaunchRecorder()
    yield recorder
    recorder.cleanup(task_launcher)


@pytest.fixture()
def scenario_runner(
    task_launcher: TaskLauncher,
    test_application: AppResource,
    tck_settings: Settings,
    launch_recorder: LaunchRecorder,
) -> Iterator[ScenarioRunner]:
    cancellation = CancellationToken()
    yield ScenarioRunner(
        launcher=task_launcher,
        test_application=test_application,
        settings=tck_settings,
        recorder=launch_recorder,
        cancellation=cancellation,
    )
    cancellation.cancel()
