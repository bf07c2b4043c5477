"""Conformance test harness for asynchronous task launchers."""

__version__ = "0.1.0"
