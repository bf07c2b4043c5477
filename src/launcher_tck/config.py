"""Runtime configuration for the conformance harness."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field

from launcher_tck.eventually import PollPolicy
from launcher_tck.models import AppResource
from launcher_tck.testapp import default_test_application

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(slots=True)
class Settings:
    """Harness settings: poll policies, test application and logging."""

    deployment: PollPolicy = field(
        default_factory=lambda: PollPolicy(max_attempts=20, pause_millis=2_000),
    )
    undeployment: PollPolicy = field(
        default_factory=lambda: PollPolicy(max_attempts=20, pause_millis=2_000),
    )
    test_app_command: tuple[str, ...] = ()
    cancel_grace_seconds: float = 5.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment with defaults suited to a local launcher."""

        return cls(
            deployment=_policy_from_env("DEPLOYMENT"),
            undeployment=_policy_from_env("UNDEPLOYMENT"),
            test_app_command=tuple(shlex.split(os.getenv("LAUNCHER_TCK_TEST_APP_COMMAND", ""))),
            cancel_grace_seconds=_env_float("LAUNCHER_TCK_CANCEL_GRACE_SECONDS", "5.0"),
            log_level=_env_log_level("LAUNCHER_TCK_LOG_LEVEL", "INFO"),
        )

    def test_application(self) -> AppResource:
        """Configured test application, or the bundled one when unset."""

        if self.test_app_command:
            return AppResource(command=self.test_app_command)
        return default_test_application()


def _policy_from_env(prefix: str) -> PollPolicy:
    attempts_name = f"LAUNCHER_TCK_{prefix}_MAX_ATTEMPTS"
    pause_name = f"LAUNCHER_TCK_{prefix}_PAUSE_MILLIS"
    max_attempts = _env_int(attempts_name, "20")
    pause_millis = _env_int(pause_name, "2000")
    try:
        return PollPolicy(max_attempts=max_attempts, pause_millis=pause_millis)
    except ValueError as error:
        raise ValueError(f"Invalid {attempts_name}/{pause_name}: {error}") from error


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        value = float(raw)
    except ValueError as error:
        raise ValueError(f"Invalid number for {name}: {raw!r}") from error
    if value < 0:
        raise ValueError(f"{name} must be >= 0.")
    return value


def _env_log_level(name: str, default: str) -> str:
    value = os.getenv(name, default).strip().upper()
    if value not in _LOG_LEVELS:
        raise ValueError(f"Invalid log level for {name}: {value!r}")
    return value
