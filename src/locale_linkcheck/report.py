"""Rendering of link failures and run summaries."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, TextIO

from rich.console import Console
from rich.table import Table

from locale_linkcheck.constants import PATH_SEPARATOR

if TYPE_CHECKING:
    from locale_linkcheck.validator import LinkFailure, ValidationReport


def format_path(path: Iterable[str | int]) -> str:
    return PATH_SEPARATOR.join(str(part) for part in path)


def format_failure(failure: LinkFailure) -> str:
    return f"FAILED LINK IN {format_path(failure.path)} : {failure.link}"


class Reporter(Protocol):
    def failure(self, failure: LinkFailure) -> None: ...


class NullReporter:
    def failure(self, failure: LinkFailure) -> None:
        pass


class StreamReporter:
    """Writes one plain diagnostic line per failure."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout

    def failure(self, failure: LinkFailure) -> None:
        self.stream.write(format_failure(failure) + "\n")
        self.stream.flush()


class CollectingReporter:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def failure(self, failure: LinkFailure) -> None:
        self.lines.append(format_failure(failure))


def print_summary(report: ValidationReport, console: Console | None = None) -> None:
    """Per-locale summary table."""
    console = console or Console(stderr=True)
    table = Table(title="Locale Link Check", show_header=True)
    table.add_column("Locale", style="cyan")
    table.add_column("Links", justify="right")
    table.add_column("Failed", justify="right")

    for locale in report.locales:
        failed = report.failures_by_locale().get(locale, 0)
        style = "red" if failed else "green"
        table.add_row(locale, str(report.occurrences.get(locale, 0)), f"[{style}]{failed}[/{style}]")

    console.print(table)
    if report.ok:
        console.print(f"[bold green]✓ {report.checks} link checks, none failed.[/bold green]")
    else:
        console.print(
            f"[bold red]✗ {len(report.failures)} failing link occurrences "
            f"({report.checks} link checks).[/bold red]"
        )
