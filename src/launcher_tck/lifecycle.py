"""Launch lifecycle states and the monotone observation rule."""

from __future__ import annotations

from enum import Enum


class LaunchState(str, Enum):
    """Lifecycle stage of one launch as reported by a task launcher."""

    UNKNOWN = "unknown"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES: frozenset[LaunchState] = frozenset(
    {LaunchState.COMPLETE, LaunchState.FAILED, LaunchState.CANCELLED},
)

# Observable successors, not launcher-side transitions: a short task may finish
# between two polls, so running is allowed to be skipped.
_SUCCESSORS: dict[LaunchState, frozenset[LaunchState]] = {
    LaunchState.UNKNOWN: frozenset(LaunchState),
    LaunchState.RUNNING: frozenset({LaunchState.RUNNING, *TERMINAL_STATES}),
    LaunchState.COMPLETE: frozenset({LaunchState.COMPLETE}),
    LaunchState.FAILED: frozenset({LaunchState.FAILED}),
    LaunchState.CANCELLED: frozenset({LaunchState.CANCELLED}),
}


class LifecycleViolationError(AssertionError):
    """Observed state sequence is not a path through the lifecycle graph."""

    def __init__(self, message: str, *, history: tuple[LaunchState, ...]) -> None:
        super().__init__(message)
        self.history = history


def is_terminal(state: LaunchState) -> bool:
    return state in TERMINAL_STATES


def can_follow(previous: LaunchState, current: LaunchState) -> bool:
    """Return True when ``current`` may be observed right after ``previous``."""

    return current in _SUCCESSORS[previous]


class LifecycleObserver:
    """Track states observed for one launch id and reject backward moves."""

    def __init__(self, launch_id: str) -> None:
        self.launch_id = launch_id
        self._history: list[LaunchState] = []

    @property
    def history(self) -> tuple[LaunchState, ...]:
        return tuple(self._history)

    @property
    def last(self) -> LaunchState | None:
        return self._history[-1] if self._history else None

    def observe(self, state: LaunchState) -> None:
        previous = self.last
        if previous is None:
            self._history.append(state)
            return
        if not can_follow(previous, state):
            path = " -> ".join(item.value for item in (*self._history, state))
            raise LifecycleViolationError(
                f"Illegal lifecycle transition for {self.launch_id!r}: "
                f"{previous.value} -> {state.value} (observed {path})",
                history=(*self._history, state),
            )
        if state != previous:
            self._history.append(state)
