"""Domain models shared by launchers, probes and scenarios."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from launcher_tck.lifecycle import LaunchState, is_terminal

LaunchId = str


@dataclass(frozen=True, slots=True)
class TaskStatus:
    """Point-in-time status snapshot for one launch."""

    launch_id: LaunchId
    state: LaunchState
    attributes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def terminal(self) -> bool:
        return is_terminal(self.state)


@dataclass(slots=True)
class AppDefinition:
    """Application name plus the string properties handed to the app."""

    name: str
    properties: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class AppResource:
    """Executable artifact, expressed as the command that starts it."""

    command: tuple[str, ...]

    def describe(self) -> str:
        return shlex.join(self.command)


@dataclass(slots=True)
class LaunchRequest:
    """Everything a task launcher needs to start one task."""

    definition: AppDefinition
    resource: AppResource
    deployment_properties: dict[str, str] = field(default_factory=dict)
    command_line_args: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LaunchRecord:
    """Launch id paired with the definition name it was launched from."""

    launch_id: LaunchId
    name: str
