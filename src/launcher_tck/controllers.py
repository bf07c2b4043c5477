"""Controllers for conformance CLI commands."""

from __future__ import annotations

from dataclasses import dataclass

from launcher_tck.config import Settings
from launcher_tck.eventually import (
    CancellationToken,
    EventuallyTimeoutError,
    PollingInterruptedError,
    ProbeError,
)
from launcher_tck.launcher.base import LaunchError
from launcher_tck.launcher.local import LocalTaskLauncher
from launcher_tck.records import LaunchRecorder
from launcher_tck.scenarios import SCENARIOS, ScenarioReport, ScenarioRunner, run_scenarios


@dataclass(slots=True)
class RunScenariosCommand:
    """CLI input for a scenario run against the local launcher."""

    scenarios: tuple[str, ...]
    jobs: int


@dataclass(slots=True)
class StatusCommand:
    """CLI input for a single status query."""

    launch_id: str


@dataclass(slots=True)
class RunScenariosResult:
    """Scenario run report to render in CLI."""

    lines: list[str]
    success: bool


class ConformanceCliController:
    """Coordinates scenario runs and status queries for the CLI."""

    def list_scenarios(self) -> list[str]:
        return list(SCENARIOS)

    def run(self, command: RunScenariosCommand) -> RunScenariosResult:
        settings = Settings.from_env()
        cancellation = CancellationToken()
        with LocalTaskLauncher(cancel_grace_seconds=settings.cancel_grace_seconds) as launcher:
            test_application = settings.test_application()

            def _runner() -> ScenarioRunner:
                return ScenarioRunner(
                    launcher=launcher,
                    test_application=test_application,
                    settings=settings,
                    recorder=LaunchRecorder(),
                )

            reports = run_scenarios(
                _runner,
                command.scenarios,
                jobs=command.jobs,
                cancellation=cancellation,
            )

        lines = [
            "Launcher conformance:",
            f"test_application={test_application.describe()}",
            f"deployment={settings.deployment.describe()}",
            f"undeployment={settings.undeployment.describe()}",
        ]
        lines.extend(_render_report(report) for report in reports)
        passed = sum(1 for report in reports if report.passed)
        lines.append(f"passed={passed} failed={len(reports) - passed}")
        return RunScenariosResult(lines=lines, success=passed == len(reports))

    def status(self, command: StatusCommand) -> list[str]:
        """Smoke check: a fresh local launcher reports any id as unknown."""

        status = LocalTaskLauncher().status(command.launch_id)
        return [f"{status.launch_id}: {status.state.value}"]


def _render_report(report: ScenarioReport) -> str:
    if report.passed and report.outcome is not None:
        histories = "; ".join(
            f"{launch_id}: {' -> '.join(state.value for state in history)}"
            for launch_id, history in report.outcome.histories.items()
        )
        suffix = f" [{histories}]" if histories else ""
        return f"PASS {report.name}{suffix}"

    return f"FAIL {report.name} ({_failure_kind(report.error)}): {report.error}"


def _failure_kind(error: BaseException | None) -> str:
    if isinstance(error, ProbeError):
        return "probe error"
    if isinstance(error, LaunchError):
        return "launch error"
    if isinstance(error, EventuallyTimeoutError):
        return "timeout"
    if isinstance(error, PollingInterruptedError):
        return "interrupted"
    return "failure"
