"""CLI module."""

from testplane.cli.main import cli

__all__ = ["cli"]
