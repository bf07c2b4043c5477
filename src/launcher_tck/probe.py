"""Status probe adapter and conditions over task status snapshots."""

from __future__ import annotations

from collections.abc import Callable

from launcher_tck.eventually import Condition, condition
from launcher_tck.launcher.base import TaskLauncher
from launcher_tck.lifecycle import LaunchState, LifecycleObserver
from launcher_tck.models import LaunchId, TaskStatus


class StatusProbe:
    """Zero-argument live status query for one launch id."""

    def __init__(
        self,
        launcher: TaskLauncher,
        launch_id: LaunchId,
        *,
        observer: LifecycleObserver | None = None,
    ) -> None:
        self.launcher = launcher
        self.launch_id = launch_id
        self.observer = observer

    @property
    def description(self) -> str:
        return f"status of {self.launch_id!r}"

    def __call__(self) -> TaskStatus:
        status = self.launcher.status(self.launch_id)
        if self.observer is not None:
            self.observer.observe(status.state)
        return status


def has_state(state: LaunchState) -> Condition[TaskStatus]:
    return has_status_that(
        f"has state {state.value}",
        lambda status: status.state == state,
    )


def has_status_that(
    description: str,
    predicate: Callable[[TaskStatus], bool],
) -> Condition[TaskStatus]:
    """Condition over a status snapshot whose mismatch reports the observed state."""

    return condition(
        description,
        predicate,
        mismatch=_describe_status,
    )


def _describe_status(status: TaskStatus) -> str:
    if not status.attributes:
        return f"state was {status.state.value}"
    details = ", ".join(f"{key}={value}" for key, value in sorted(status.attributes.items()))
    return f"state was {status.state.value} ({details})"
