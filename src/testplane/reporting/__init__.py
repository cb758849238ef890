"""Reporting exports."""

from testplane.reporting.console import ConsoleReporter, pluralize, render_detail

__all__ = ["ConsoleReporter", "pluralize", "render_detail"]
