"""CLI entrypoint for launcher-tck."""

import logging

import rich_click as click

from launcher_tck import __version__
from launcher_tck.config import Settings
from launcher_tck.controllers import (
    ConformanceCliController,
    RunScenariosCommand,
    StatusCommand,
)
from launcher_tck.scenarios import SCENARIOS

click.rich_click.USE_MARKDOWN = True
CONTROLLER = ConformanceCliController()


@click.group()
@click.version_option(version=__version__, prog_name="launcher-tck")
@click.option(
    "--log-level",
    type=click.Choice(["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"], case_sensitive=False),
    default=None,
    help="Log level. Defaults to LAUNCHER_TCK_LOG_LEVEL or INFO.",
)
def launcher_tck(log_level: str | None) -> None:
    """Task launcher conformance CLI."""

    level = (log_level or _load_settings().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@launcher_tck.command("scenarios")
def list_scenarios() -> None:
    """List available conformance scenarios."""

    _emit_lines(CONTROLLER.list_scenarios())


@launcher_tck.command("run")
@click.option(
    "--scenario",
    "scenarios",
    multiple=True,
    type=click.Choice(list(SCENARIOS)),
    help="Scenario to run. Can be repeated; all scenarios run when omitted.",
)
@click.option(
    "--jobs",
    type=click.IntRange(min=1, max=32),
    default=1,
    show_default=True,
    help="How many scenarios to run concurrently.",
)
def run(scenarios: tuple[str, ...], jobs: int) -> None:
    """Run conformance scenarios against the local reference launcher."""

    try:
        result = CONTROLLER.run(RunScenariosCommand(scenarios=scenarios, jobs=jobs))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Conformance run failed.")


@launcher_tck.command("status")
@click.argument("launch_id")
def status(launch_id: str) -> None:
    """Smoke-check the status query with LAUNCH_ID.

    Queries a brand-new local launcher, so it always prints `unknown`; it does not
    look up launches made by other commands.
    """

    _emit_lines(CONTROLLER.status(StatusCommand(launch_id=launch_id)))


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ValueError as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    launcher_tck()
