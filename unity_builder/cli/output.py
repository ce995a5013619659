"""Rich-based output formatting utilities for Unity Builder."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

console = Console()
err_console = Console(stderr=True)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, ensure_ascii=False, default=str))


def print_error(message: str, code: str | None = None) -> None:
    """Print error message to stderr.

    Args:
        message: Error message (will be escaped to prevent markup injection)
        code: Optional error code
    """
    text = Text()
    text.append("Error: ", style="bold red")
    text.append(escape(message))
    err_console.print(text)

    if code:
        code_text = Text()
        code_text.append("Code: ", style="dim")
        code_text.append(escape(code), style="yellow")
        err_console.print(code_text)


def _print_tagged(tag: str, style: str, message: str) -> None:
    text = Text()
    text.append(f"[{tag}] ", style=style)
    text.append(message)
    console.print(text)


def print_success(message: str) -> None:
    _print_tagged("OK", "bold green", message)


def print_warning(message: str) -> None:
    _print_tagged("WARN", "bold yellow", message)


def print_instances_table(instances: list[dict[str, Any]]) -> None:
    """Print Unity instances connected to the relay."""
    if not instances:
        console.print("No Unity instances connected", style="dim")
        return

    table = Table(title=f"Connected Instances ({len(instances)})")
    table.add_column("Project", style="cyan", no_wrap=True)
    table.add_column("Unity Version", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Default", justify="center")

    for inst in instances:
        project = escape(inst.get("project_name", inst.get("instance_id", "Unknown")))
        version = escape(inst.get("unity_version", "Unknown"))
        status = inst.get("status", "unknown")
        is_default = "[green]*[/green]" if inst.get("is_default") else ""

        status_style = {
            "ready": "green",
            "busy": "yellow",
            "reloading": "magenta",
            "disconnected": "red",
        }.get(status.lower(), "dim")

        table.add_row(project, version, Text(escape(status), style=status_style), is_default)

    console.print(table)


def print_key_value(data: dict[str, Any], title: str | None = None) -> None:
    """Print dict as an aligned two-column table."""
    table = Table(title=escape(title) if title else None, show_header=False, box=None, pad_edge=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")

    for key, value in data.items():
        if isinstance(value, bool):
            display = "[green]yes[/green]" if value else "[dim]no[/dim]"
        elif value in (None, ""):
            display = "[dim]-[/dim]"
        elif isinstance(value, list):
            display = escape(", ".join(str(v) for v in value)) or "[dim]-[/dim]"
        else:
            display = escape(str(value))
        table.add_row(escape(str(key)), display)

    console.print(table)


def print_build_summary(summary: dict[str, Any]) -> None:
    """Print the summary of a finished build."""
    result = summary.get("result", "Unknown")
    style = {"Succeeded": "bold green", "Failed": "bold red", "Cancelled": "yellow"}.get(result, "dim")

    size = summary.get("totalSize", 0)
    seconds = summary.get("totalTimeSeconds", 0.0)

    table = Table(title="Build Summary", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value", overflow="fold")
    table.add_row("Result", Text(escape(str(result)), style=style))
    table.add_row("Platform", escape(str(summary.get("platform", ""))))
    table.add_row("Output", escape(str(summary.get("outputPath", ""))))
    table.add_row("Size", f"{size / (1024 * 1024):.1f} MiB")
    table.add_row("Time", f"{seconds:.1f}s")
    table.add_row("Errors", str(summary.get("totalErrors", 0)))
    table.add_row("Warnings", str(summary.get("totalWarnings", 0)))

    console.print(table)
