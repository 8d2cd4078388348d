"""
CLI output helpers — rich tables for reports, plans and errors.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from fontspine.core.errors import ExternalToolError, FontSpineError, categorize_error, root_cause
from fontspine.engine.context import BuildReport

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_BUILD_FAILED = 1
EXIT_CONFIG_ERROR = 2


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_error(error: BaseException) -> None:
    """One-line error with its category, plus tool output when there is any."""
    message = error.message if isinstance(error, FontSpineError) else str(error)
    err_console.print(f"[bold red]Error[/bold red] ({categorize_error(error).value}): {message}")
    if isinstance(error, ExternalToolError) and error.output:
        err_console.print(error.output, markup=False, highlight=False)


def print_report(report: BuildReport) -> None:
    """Summary of a run: counts, then every failed key with its cause."""
    console.print(
        f"[green]{len(report.executed)} built[/green], "
        f"{len(report.skipped)} up to date, "
        f"[red]{len(report.failed)} failed[/red], "
        f"[yellow]{len(report.blocked)} blocked[/yellow]"
    )
    if not report.failed:
        return

    table = Table(title="Failed tasks", show_lines=False)
    table.add_column("Task", style="bold")
    table.add_column("Error")
    table.add_column("Command", overflow="fold")
    for key, error in report.failed.items():
        cause = root_cause(error)
        command = " ".join(cause.command) if isinstance(cause, ExternalToolError) else ""
        table.add_row(key, str(cause), command)
    err_console.print(table)

    for error in report.failed.values():
        cause = root_cause(error)
        if isinstance(cause, ExternalToolError) and cause.output:
            err_console.rule(f"[red]{error.key}")
            err_console.print(cause.output, markup=False, highlight=False)


def rows_table(title: str, columns: list[str], rows: list[list[Any]]) -> Table:
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(cell) for cell in row))
    return table
