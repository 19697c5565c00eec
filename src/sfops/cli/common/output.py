"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)

_CONFIRM_STYLE = Style.from_dict(
    {
        "question": "bold ansibrightred",
        "answer": "bold ansibrightred",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
    }
)


def _cell(value: Any) -> str:
    """Render a record field; nested objects (relationships) as compact JSON."""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to be SF-OPS consistent."""
        return f"[SF-OPS] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def json(self, payload: Any) -> None:
        """Print a JSON payload with syntax highlighting."""
        console.print_json(json.dumps(payload))

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        console.print("[meta]Use y/n then Enter[/]")

        prompt = questionary.confirm(
            self._q(message),
            default=default,
            style=_CONFIRM_STYLE,
            qmark="✦",
            auto_enter=False,
        )
        return bool(prompt.ask())

    def records_table(
        self, records: Iterable[Mapping[str, Any]], title: str = "Records"
    ) -> None:
        """
        Render SOQL records. Columns are the union of record keys in order
        of first appearance, without the ``attributes`` metadata.
        """
        rows = list(records)
        columns: list[str] = []
        for r in rows:
            for key in r:
                if key != "attributes" and key not in columns:
                    columns.append(key)

        t = Table(title=title, show_lines=False)
        for i, col in enumerate(columns):
            t.add_column(col, style="ok" if i == 0 else None, no_wrap=i == 0)

        for r in rows:
            t.add_row(*(_cell(r.get(col)) for col in columns))

        console.print(t)

    def job_result_table(self, result: Any, title: str = "Bulk job") -> None:
        """
        Expects a BulkJobResult (job, outcome, status, polls).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Job ID", style="ok", no_wrap=True)
        t.add_column("Object")
        t.add_column("Batches", justify="right")
        t.add_column("Completed", justify="right")
        t.add_column("Failed", justify="right")
        t.add_column("Outcome")

        status = result.status
        failed = status.failed if status else 0
        style = "ok" if not failed else "warn"
        t.add_row(
            result.job.job_id,
            result.job.object_name,
            str(status.total if status else result.job.batch_count),
            str(status.completed) if status else "-",
            f"[err]{failed}[/err]" if failed else str(failed),
            f"[{style}]{result.outcome.value}[/{style}]",
        )

        console.print(t)


out = Out()
