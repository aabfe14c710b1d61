"""Dual-mode CLI output.

Commands report through an Output instance so the same code path serves
both audiences:

- human mode (default): Rich-rendered status lines and tables
- JSON mode (``--json``): one JSON document on stdout when the command ends

Example:
    out = Output(console=console, json_mode=get_json_mode())
    out.success("Loaded schema", schema_name="fhir", classifier_count=812)
    out.table("Classifiers", ["Name", "Kind"], [["Patient", "class"]])
    raise typer.Exit(out.finish())
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, PrivateAttr
from rich.console import Console
from rich.table import Table

from ..core.models import DiagnosticCategory, ProfilingResult


class ExitCode:
    """Process exit codes.

    Skipped constraints never change the exit code; only boundary failures do:
        0 = Success
        1 = Usage or config error
        3 = Input file not found
        4 = Base schema could not be loaded
        5 = Profile could not be loaded
        6 = Output schema could not be written
    """

    SUCCESS = 0
    USAGE_ERROR = 1
    FILE_NOT_FOUND = 3
    SCHEMA_ERROR = 4
    PROFILE_ERROR = 5
    WRITE_ERROR = 6


class Output(BaseModel):
    """Collects a command's report and renders it for the active mode."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    console: Console
    json_mode: bool = False

    _payload: dict[str, Any] = PrivateAttr(default_factory=dict)
    _code: int = PrivateAttr(default=ExitCode.SUCCESS)

    def model_post_init(self, __context: Any) -> None:
        self._payload = {"status": "success", "warnings": [], "errors": []}

    def success(self, message: str, **data: Any) -> None:
        """Report progress; ``data`` lands at the top level of the JSON document."""
        if self.json_mode:
            self._payload.update(data)
            return
        self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str, **context: str | None) -> None:
        """Report a non-fatal problem; ``context`` keys with values are kept in JSON."""
        if self.json_mode:
            entry = {"message": message}
            entry.update({k: v for k, v in context.items() if v})
            self._payload["warnings"].append(entry)
            return
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def error(
        self,
        message: str,
        *,
        suggestion: str | None = None,
        exit_code: int = ExitCode.USAGE_ERROR,
    ) -> None:
        """Report a failure; the last error's code is what finish() returns."""
        self._code = exit_code
        self._payload["status"] = "error"

        if self.json_mode:
            entry = {"message": message}
            if suggestion:
                entry["suggestion"] = suggestion
            self._payload["errors"].append(entry)
            return
        self.console.print(f"[red]✗[/red] {message}")
        if suggestion:
            self.console.print(f"  [dim]→ {suggestion}[/dim]")

    def text(self, message: str) -> None:
        if not self.json_mode:
            self.console.print(message, markup=False)

    def blank(self) -> None:
        if not self.json_mode:
            self.console.print()

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[str]],
        *,
        data_key: str | None = None,
    ) -> None:
        """Render rows as a Rich table, or as a list of objects in JSON.

        The JSON key defaults to the snake_cased title.
        """
        if self.json_mode:
            key = data_key or title.lower().replace(" ", "_")
            self._payload[key] = [dict(zip(columns, row)) for row in rows]
            return

        table = Table(title=title, show_header=True, header_style="bold")
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)

    def set_data(self, key: str, value: Any) -> None:
        self._payload[key] = value

    def finish(self) -> int:
        """Emit the JSON document (JSON mode) and return the exit code."""
        if self.json_mode:
            self._payload["exit_code"] = self._code
            print(json.dumps(self._payload, indent=2, default=str))
        return self._code


def format_diagnostics_for_json(result: ProfilingResult) -> dict[str, Any]:
    """Counts and diagnostics of a profiling run as plain JSON data."""
    return {
        "applied_count": result.applied_count,
        "skipped_count": result.skipped_count,
        "class_count": len(result.schema.classifiers),
        "category_counts": {
            category.value: len(result.by_category(category))
            for category in DiagnosticCategory
            if result.by_category(category)
        },
        "diagnostics": [d.model_dump(mode="json") for d in result.diagnostics],
    }
