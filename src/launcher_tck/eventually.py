"""Retry-until-match assertion engine.

``eventually`` polls a zero-argument probe until a :class:`Condition` holds or the
:class:`PollPolicy` attempt budget is spent. A condition that does not hold yet is
retried; a probe that raises ends the run at that attempt.

The pause between attempts goes through a :class:`CancellationToken`; cancelling it
aborts the run as a failure.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Waiter = Callable[[float], bool]


@dataclass(frozen=True, slots=True)
class PollPolicy:
    """Attempt budget and pause between attempts for one ``eventually`` run."""

    max_attempts: int
    pause_millis: int

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts!r}")
        if self.pause_millis < 0:
            raise ValueError(f"pause_millis must be >= 0, got {self.pause_millis!r}")

    @property
    def pause_seconds(self) -> float:
        return self.pause_millis / 1000

    def describe(self) -> str:
        return f"{self.max_attempts} attempts ({self.pause_millis} ms apart)"


@dataclass(frozen=True, slots=True)
class Condition(Generic[T]):
    """Predicate paired with its own description and mismatch reporter."""

    description: str
    predicate: Callable[[T], bool]
    mismatch: Callable[[T], str] | None = None

    def matches(self, value: T) -> bool:
        return bool(self.predicate(value))

    def describe_mismatch(self, value: T) -> str:
        if self.mismatch is not None:
            return self.mismatch(value)
        return f"was {value!r}"


def condition(
    description: str,
    predicate: Callable[[T], bool],
    mismatch: Callable[[T], str] | None = None,
) -> Condition[T]:
    return Condition(description=description, predicate=predicate, mismatch=mismatch)


def is_not(inner: Condition[T]) -> Condition[T]:
    return Condition(
        description=f"not {inner.description}",
        predicate=lambda value: not inner.matches(value),
        mismatch=lambda value: f"was {value!r}",
    )


def all_of(*conditions: Condition[T]) -> Condition[T]:
    if not conditions:
        raise ValueError("all_of() requires at least one condition")

    def _mismatch(value: T) -> str:
        failed = [item for item in conditions if not item.matches(value)]
        return "; ".join(f"{item.description}: {item.describe_mismatch(value)}" for item in failed)

    return Condition(
        description=" and ".join(f"({item.description})" for item in conditions),
        predicate=lambda value: all(item.matches(value) for item in conditions),
        mismatch=_mismatch,
    )


class CancellationToken:
    """Cancellable wait primitive shared between a poller and its controller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""

        return self._event.wait(timeout=max(0.0, seconds))


class PollingError(AssertionError):
    """Base failure of an ``eventually`` run, carrying full diagnostic context."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        description: str,
        last_value: Any = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.description = description
        self.last_value = last_value


class EventuallyTimeoutError(PollingError):
    """Condition never held within the attempt budget."""


class PollingInterruptedError(PollingError):
    """Polling was cancelled before the condition held."""


class ProbeError(PollingError):
    """Probe raised instead of returning a value; never retried."""


def eventually(  # noqa: PLR0913
    probe: Callable[[], T],
    expected: Condition[T],
    policy: PollPolicy,
    *,
    subject: str | None = None,
    cancellation: CancellationToken | None = None,
    waiter: Waiter | None = None,
) -> T:
    """Poll ``probe`` until ``expected`` matches and return the matching value.

    Args:
        probe: Zero-argument callable returning a fresh snapshot on each call.
        expected: Condition the snapshot must satisfy.
        policy: Attempt budget; the first probe counts as attempt 1.
        subject: Human-readable name of what is probed, used in failure messages.
        cancellation: Token whose cancellation aborts the wait between attempts.
        waiter: Replacement wait primitive, mostly for tests; returns True when
            the wait was interrupted.

    Raises:
        ProbeError: The probe raised; the original exception is chained.
            Assertion failures raised by the probe propagate unchanged.
        EventuallyTimeoutError: ``policy.max_attempts`` probes never matched.
        PollingInterruptedError: The wait between attempts was cancelled.
    """

    token = cancellation or CancellationToken()
    wait = waiter or token.wait
    label = subject or getattr(probe, "description", None) or "value"
    expectation = f"Expected {label} {expected.description} within {policy.describe()}"

    attempt = 0
    last_value: T | None = None
    while True:
        attempt += 1
        if token.cancelled:
            raise PollingInterruptedError(
                f"{expectation}, but polling was cancelled before attempt {attempt}",
                attempts=attempt - 1,
                description=expected.description,
                last_value=last_value,
            )

        try:
            value = probe()
        except AssertionError:
            raise
        except Exception as error:
            raise ProbeError(
                f"{expectation}, but probe failed on attempt {attempt}: {error}",
                attempts=attempt,
                description=expected.description,
                last_value=last_value,
            ) from error

        last_value = value
        if expected.matches(value):
            logger.info("%s %s after %d attempt(s)", label, expected.description, attempt)
            return value

        mismatch = expected.describe_mismatch(value)
        logger.debug(
            "Attempt %d/%d: %s %s",
            attempt,
            policy.max_attempts,
            label,
            mismatch,
        )
        if attempt >= policy.max_attempts:
            raise EventuallyTimeoutError(
                f"{expectation}, but after {attempt} attempts: {label} {mismatch}",
                attempts=attempt,
                description=expected.description,
                last_value=value,
            )

        if wait(policy.pause_seconds):
            raise PollingInterruptedError(
                f"{expectation}, but polling was cancelled after {attempt} attempts: "
                f"{label} {mismatch}",
                attempts=attempt,
                description=expected.description,
                last_value=value,
            )
