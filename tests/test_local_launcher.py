from __future__ import annotations

import allure
import pytest

from launcher_tck.eventually import PollPolicy, eventually
from launcher_tck.launcher.base import LaunchError
from launcher_tck.launcher.local import LocalTaskLauncher, build_argv
from launcher_tck.lifecycle import LaunchState
from launcher_tck.models import AppDefinition, AppResource, LaunchRequest
from launcher_tck.probe import StatusProbe, has_state
from launcher_tck.testapp import default_test_application

pytestmark = [
    allure.epic("Launcher Conformance"),
    allure.feature("Local Reference Launcher"),
]

POLICY = PollPolicy(max_attempts=100, pause_millis=100)


def _request(properties: dict[str, str], args: list[str] | None = None) -> LaunchRequest:
    return LaunchRequest(
        definition=AppDefinition(name="local-test", properties=properties),
        resource=default_test_application(),
        command_line_args=args or [],
    )


def _await(launcher: LocalTaskLauncher, launch_id: str, state: LaunchState):
    return eventually(StatusProbe(launcher, launch_id), has_state(state), POLICY)


def test_build_argv_appends_properties_then_deployment_then_args() -> None:
    request = LaunchRequest(
        definition=AppDefinition(name="x", properties={"killDelay": "0"}),
        resource=AppResource(command=("app", "--base")),
        deployment_properties={"memory": "1g"},
        command_line_args=["--exitCode=3"],
    )

    assert build_argv(request) == ["app", "--base", "--killDelay=0", "--memory=1g", "--exitCode=3"]


def test_empty_resource_command_is_a_launch_error() -> None:
    request = LaunchRequest(definition=AppDefinition(name="x"), resource=AppResource(command=()))

    with pytest.raises(LaunchError) as excinfo:
        build_argv(request)
    assert excinfo.value.transient is False


def test_missing_executable_is_non_transient_launch_error(local_launcher) -> None:
    request = LaunchRequest(
        definition=AppDefinition(name="missing"),
        resource=AppResource(command=("definitely-not-a-real-executable-xyz",)),
    )

    with pytest.raises(LaunchError, match="not found") as excinfo:
        local_launcher.launch(request)
    assert excinfo.value.transient is False


def test_never_launched_id_is_unknown(local_launcher) -> None:
    assert local_launcher.status("never-launched").state == LaunchState.UNKNOWN


def test_successful_exit_is_complete_and_stable(local_launcher) -> None:
    launch_id = local_launcher.launch(_request({"killDelay": "0", "exitCode": "0"}))

    status = _await(local_launcher, launch_id, LaunchState.COMPLETE)

    assert status.attributes["exit_code"] == "0"
    assert local_launcher.status(launch_id).state == LaunchState.COMPLETE


def test_failing_exit_is_failed(local_launcher) -> None:
    launch_id = local_launcher.launch(_request({"killDelay": "0", "exitCode": "1"}))

    status = _await(local_launcher, launch_id, LaunchState.FAILED)

    assert status.attributes["exit_code"] == "1"


def test_launch_ids_are_fresh_per_launch(local_launcher) -> None:
    request = _request({"killDelay": "0", "exitCode": "0"})

    first = local_launcher.launch(request)
    second = local_launcher.launch(request)

    assert first != second
    assert first.startswith("local-test-")


def test_cancel_running_task_reports_cancelled(local_launcher) -> None:
    launch_id = local_launcher.launch(_request({"killDelay": "-1"}))
    _await(local_launcher, launch_id, LaunchState.RUNNING)

    local_launcher.cancel(launch_id)

    _await(local_launcher, launch_id, LaunchState.CANCELLED)
    local_launcher.cancel(launch_id)
    assert local_launcher.status(launch_id).state == LaunchState.CANCELLED


def test_cancel_after_completion_keeps_terminal_state(local_launcher) -> None:
    launch_id = local_launcher.launch(_request({"killDelay": "0", "exitCode": "0"}))
    _await(local_launcher, launch_id, LaunchState.COMPLETE)

    local_launcher.cancel(launch_id)

    assert local_launcher.status(launch_id).state == LaunchState.COMPLETE


def test_cancel_unknown_id_is_a_no_op(local_launcher) -> None:
    local_launcher.cancel("never-launched")

    assert local_launcher.status("never-launched").state == LaunchState.UNKNOWN


def test_command_line_args_override_definition_properties(local_launcher) -> None:
    launch_id = local_launcher.launch(_request({"killDelay": "0", "exitCode": "1"}, ["--exitCode=0"]))

    _await(local_launcher, launch_id, LaunchState.COMPLETE)


def test_shutdown_cancels_running_tasks() -> None:
    launcher = LocalTaskLauncher(cancel_grace_seconds=2.0)
    launch_id = launcher.launch(_request({"killDelay": "-1"}))

    launcher.shutdown()

    assert launcher.status(launch_id).state == LaunchState.CANCELLED
