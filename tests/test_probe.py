from __future__ import annotations

import allure
import pytest

from launcher_tck.eventually import EventuallyTimeoutError, PollPolicy, eventually
from launcher_tck.lifecycle import LaunchState, LifecycleObserver, LifecycleViolationError
from launcher_tck.models import AppDefinition, AppResource, LaunchRequest, TaskStatus
from launcher_tck.probe import StatusProbe, has_state

pytestmark = [
    allure.epic("Launcher Conformance"),
    allure.feature("Status Probe"),
]


def _request() -> LaunchRequest:
    return LaunchRequest(
        definition=AppDefinition(name="probe-test"),
        resource=AppResource(command=("true",)),
    )


def test_probe_queries_live_on_every_call(scripted_launcher) -> None:
    launcher = scripted_launcher([LaunchState.RUNNING, LaunchState.RUNNING, LaunchState.COMPLETE])
    launch_id = launcher.launch(_request())
    probe = StatusProbe(launcher, launch_id)

    states = [probe().state for _ in range(3)]

    assert states == [LaunchState.RUNNING, LaunchState.RUNNING, LaunchState.COMPLETE]
    assert launcher.status_calls == 3
    assert probe.description == f"status of {launch_id!r}"


def test_probe_feeds_observer_and_rejects_backward_transition(scripted_launcher) -> None:
    launcher = scripted_launcher([LaunchState.COMPLETE, LaunchState.RUNNING])
    launch_id = launcher.launch(_request())
    probe = StatusProbe(launcher, launch_id, observer=LifecycleObserver(launch_id))

    probe()
    with pytest.raises(LifecycleViolationError, match="complete -> running"):
        probe()


def test_has_state_mismatch_reports_observed_state_and_attributes() -> None:
    expected = has_state(LaunchState.COMPLETE)
    status = TaskStatus(
        launch_id="task-1",
        state=LaunchState.FAILED,
        attributes={"exit_code": "1", "pid": "42"},
    )

    assert expected.description == "has state complete"
    assert not expected.matches(status)
    assert expected.describe_mismatch(status) == "state was failed (exit_code=1, pid=42)"


def test_eventually_failure_names_the_launch(scripted_launcher) -> None:
    launcher = scripted_launcher([LaunchState.RUNNING])
    launch_id = launcher.launch(_request())

    with pytest.raises(EventuallyTimeoutError) as excinfo:
        eventually(
            StatusProbe(launcher, launch_id),
            has_state(LaunchState.COMPLETE),
            PollPolicy(max_attempts=2, pause_millis=0),
        )

    assert f"status of {launch_id!r} state was running" in str(excinfo.value)
    assert excinfo.value.last_value.state == LaunchState.RUNNING


def test_status_snapshot_is_immutable() -> None:
    status = TaskStatus(launch_id="task-1", state=LaunchState.RUNNING, attributes={"pid": "1"})

    with pytest.raises(AttributeError):
        status.state = LaunchState.COMPLETE  # type: ignore[misc]
    with pytest.raises(TypeError):
        status.attributes["pid"] = "2"  # type: ignore[index]
