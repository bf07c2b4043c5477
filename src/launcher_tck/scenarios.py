"""Conformance scenarios for task launchers.

Each scenario is a fixed choreography: launch, poll until an expected state,
optionally cancel and poll again. Failures surface as exceptions to the caller;
``run_scenarios`` turns them into per-scenario reports for CLI use.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from uuid import uuid4

from launcher_tck.config import Settings
from launcher_tck.eventually import CancellationToken, PollPolicy, eventually
from launcher_tck.launcher.base import TaskLauncher
from launcher_tck.lifecycle import LaunchState, LifecycleObserver, LifecycleViolationError
from launcher_tck.models import (
    AppDefinition,
    AppResource,
    LaunchId,
    LaunchRequest,
    TaskStatus,
)
from launcher_tck.probe import StatusProbe, has_state
from launcher_tck.records import CleanupError, LaunchRecorder

logger = logging.getLogger(__name__)


class LaunchIdCollisionError(AssertionError):
    """Launcher returned an id it had already issued."""


@dataclass(slots=True)
class ScenarioOutcome:
    """What one scenario launched and observed."""

    name: str
    launch_ids: list[LaunchId] = field(default_factory=list)
    statuses: list[TaskStatus] = field(default_factory=list)
    histories: dict[LaunchId, tuple[LaunchState, ...]] = field(default_factory=dict)


@dataclass(slots=True)
class ScenarioReport:
    """Scenario result as seen by a batch run."""

    name: str
    outcome: ScenarioOutcome | None
    error: BaseException | None

    @property
    def passed(self) -> bool:
        return self.error is None


def random_name(prefix: str = "task") -> str:
    """Fresh definition name, unique per call."""

    return f"{prefix}-{uuid4().hex[:12]}"


class ScenarioRunner:
    """Drive a task launcher through the conformance scenarios."""

    def __init__(
        self,
        *,
        launcher: TaskLauncher,
        test_application: AppResource,
        settings: Settings,
        recorder: LaunchRecorder | None = None,
        cancellation: CancellationToken | None = None,
    ) -> None:
        self.launcher = launcher
        self.test_application = test_application
        self.settings = settings
        self.recorder = recorder or LaunchRecorder()
        self.cancellation = cancellation or CancellationToken()

    def unknown_id_status(self) -> ScenarioOutcome:
        """A never-launched id reports ``unknown`` on the first query."""

        outcome = ScenarioOutcome(name="unknown_id_status")
        launch_id = random_name("never-launched")
        probe = StatusProbe(self.launcher, launch_id)
        expected = has_state(LaunchState.UNKNOWN)
        status = eventually(
            probe,
            expected,
            PollPolicy(max_attempts=1, pause_millis=0),
            cancellation=self.cancellation,
        )
        outcome.launch_ids.append(launch_id)
        outcome.statuses.append(status)
        return outcome

    def simple_launch(self) -> ScenarioOutcome:
        outcome = ScenarioOutcome(name="simple_launch")
        request = self._request({"killDelay": "0", "exitCode": "0"})
        launch_id = self._launch(request)
        self._await_state(outcome, launch_id, LaunchState.COMPLETE, self.settings.deployment)
        return outcome

    def relaunch(self) -> ScenarioOutcome:
        """Launching the same definition twice yields two distinct ids."""

        outcome = ScenarioOutcome(name="relaunch")
        request = self._request({"killDelay": "0", "exitCode": "0"})
        first_id = self._launch(request)
        self._await_state(outcome, first_id, LaunchState.COMPLETE, self.settings.deployment)

        logger.info("Re-launching %s...", request.definition.name)
        second_id = self._launch(request, log=False)
        if second_id == first_id:
            raise LaunchIdCollisionError(
                f"Re-launch of {request.definition.name!r} returned the same id {first_id!r}",
            )
        self._await_state(outcome, second_id, LaunchState.COMPLETE, self.settings.deployment)
        return outcome

    def error_exit(self) -> ScenarioOutcome:
        outcome = ScenarioOutcome(name="error_exit")
        request = self._request({"killDelay": "0", "exitCode": "1"})
        launch_id = self._launch(request)
        self._await_state(outcome, launch_id, LaunchState.FAILED, self.settings.deployment)
        return outcome

    def simple_cancel(self) -> ScenarioOutcome:
        """A task that runs forever is reported running, then cancelled."""

        outcome = ScenarioOutcome(name="simple_cancel")
        request = self._request({"killDelay": "-1", "exitCode": "0"})
        launch_id = self._launch(request)
        observer = LifecycleObserver(launch_id)
        self._await_state(
            outcome,
            launch_id,
            LaunchState.RUNNING,
            self.settings.deployment,
            observer=observer,
        )

        logger.info("Cancelling %s...", request.definition.name)
        self.launcher.cancel(launch_id)

        self._await_state(
            outcome,
            launch_id,
            LaunchState.CANCELLED,
            self.settings.undeployment,
            observer=observer,
        )
        return outcome

    def command_line_args(self) -> ScenarioOutcome:
        """Exit code reaches the task only through a runtime argument."""

        outcome = ScenarioOutcome(name="command_line_args")
        request = self._request({"killDelay": "1000"}, command_line_args=["--exitCode=0"])
        launch_id = self._launch(request)
        self._await_state(outcome, launch_id, LaunchState.COMPLETE, self.settings.deployment)
        return outcome

    def _request(
        self,
        properties: dict[str, str],
        *,
        command_line_args: list[str] | None = None,
    ) -> LaunchRequest:
        return LaunchRequest(
            definition=AppDefinition(name=random_name(), properties=dict(properties)),
            resource=self.test_application,
            command_line_args=list(command_line_args or []),
        )

    def _launch(self, request: LaunchRequest, *, log: bool = True) -> LaunchId:
        if log:
            logger.info("Launching %s...", request.definition.name)
        launch_id = self.launcher.launch(request)
        return self.recorder.record(launch_id, request.definition.name)

    def _await_state(  # noqa: PLR0913
        self,
        outcome: ScenarioOutcome,
        launch_id: LaunchId,
        state: LaunchState,
        policy: PollPolicy,
        *,
        observer: LifecycleObserver | None = None,
    ) -> TaskStatus:
        observer = observer or LifecycleObserver(launch_id)
        probe = StatusProbe(self.launcher, launch_id, observer=observer)
        status = eventually(
            probe,
            has_state(state),
            policy,
            cancellation=self.cancellation,
        )
        if status.terminal:
            again = probe()
            if again.state != status.state:
                raise LifecycleViolationError(
                    f"Terminal state of {launch_id!r} is not stable: "
                    f"{status.state.value} then {again.state.value}",
                    history=observer.history,
                )

        if launch_id not in outcome.launch_ids:
            outcome.launch_ids.append(launch_id)
        outcome.statuses.append(status)
        outcome.histories[launch_id] = observer.history
        return status


ScenarioMethod = Callable[[ScenarioRunner], ScenarioOutcome]

SCENARIOS: dict[str, ScenarioMethod] = {
    "unknown_id_status": ScenarioRunner.unknown_id_status,
    "simple_launch": ScenarioRunner.simple_launch,
    "relaunch": ScenarioRunner.relaunch,
    "error_exit": ScenarioRunner.error_exit,
    "simple_cancel": ScenarioRunner.simple_cancel,
    "command_line_args": ScenarioRunner.command_line_args,
}


def run_scenarios(
    runner_factory: Callable[[], ScenarioRunner],
    names: Iterable[str] | None = None,
    *,
    jobs: int = 1,
    cancellation: CancellationToken | None = None,
) -> list[ScenarioReport]:
    """Run scenarios by name, each with its own runner, and report per scenario.

    Every runner polls on the same cancellation token. Cancelling it, or an
    interrupt of the calling thread, stops all pollers at their next pause.
    """

    selected = list(names) if names else list(SCENARIOS)
    unknown = [name for name in selected if name not in SCENARIOS]
    if unknown:
        raise ValueError(f"Unknown scenario(s): {', '.join(unknown)}")

    token = cancellation or CancellationToken()

    def _run(name: str) -> ScenarioReport:
        return _run_one(runner_factory, name, token)

    if jobs <= 1:
        try:
            return [_run(name) for name in selected]
        except BaseException:
            token.cancel()
            raise

    pool = ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="scenario")
    try:
        reports = list(pool.map(_run, selected))
    except BaseException:
        token.cancel()
        pool.shutdown(wait=True, cancel_futures=True)
        raise
    pool.shutdown(wait=True)
    return reports


def _run_one(
    runner_factory: Callable[[], ScenarioRunner],
    name: str,
    cancellation: CancellationToken,
) -> ScenarioReport:
    runner = runner_factory()
    runner.cancellation = cancellation
    outcome: ScenarioOutcome | None = None
    failure: Exception | None = None
    try:
        outcome = SCENARIOS[name](runner)
    except Exception as error:  # noqa: BLE001
        failure = error

    try:
        runner.recorder.cleanup(runner.launcher)
    except CleanupError as error:
        if failure is None:
            failure = error
        else:
            logger.error("Cleanup after failed scenario %s also failed: %s", name, error)

    if failure is not None:
        logger.error("Scenario %s failed: %s", name, failure)
        return ScenarioReport(name=name, outcome=None, error=failure)
    logger.info("Scenario %s passed", name)
    return ScenarioReport(name=name, outcome=outcome, error=None)
