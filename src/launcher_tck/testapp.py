"""Deterministic test application driven by ``killDelay`` and ``exitCode``."""

from __future__ import annotations

import argparse
import sys
import time

from launcher_tck.models import AppResource


def default_test_application() -> AppResource:
    """Resource that runs this module with the current interpreter."""

    return AppResource(command=(sys.executable, "-m", "launcher_tck.testapp"))


def main(argv: list[str] | None = None) -> int:
    """Sleep for ``killDelay`` ms (forever when negative), then exit with ``exitCode``."""

    parser = argparse.ArgumentParser(prog="launcher-tck-testapp")
    parser.add_argument("--killDelay", type=int, default=0)
    parser.add_argument("--exitCode", type=int, default=0)
    args, _ = parser.parse_known_args(argv)

    if args.killDelay < 0:
        while True:
            time.sleep(1)
    time.sleep(args.killDelay / 1000)
    return args.exitCode


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
