"""Rendering of scan results and progress.

This module provides:
- build_export: The downloadable report artifact
- format_json: The report as a JSON string
- format_rich: Per-file tables and a severity summary for the terminal
- JsonLinesSink: Progress sink writing one JSON event per line
- ConsoleSink: Progress sink printing status lines to a rich console
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import IO, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from secretsweep.scanner.base import FindingSeverity, ScanResult
from secretsweep.scanner.progress import CollectingSink, ProgressEvent, ProgressSink, ScanPhase

TOOL_NAME = "SecretSweep"

SEVERITY_STYLES: dict[FindingSeverity, str] = {
    FindingSeverity.CRITICAL: "bold red",
    FindingSeverity.HIGH: "red",
    FindingSeverity.MEDIUM: "yellow",
    FindingSeverity.LOW: "cyan",
}


def build_export(result: ScanResult, tool: str = TOOL_NAME) -> dict[str, Any]:
    """Build the export artifact for a completed scan.

    Args:
        result: The completed scan.
        tool: Tool name recorded in the artifact.

    Returns:
        Dict with ``tool``, an ISO-8601 UTC ``timestamp``, the ``summary``
        and the full flat ``findings`` list.
    """
    return {
        "tool": tool,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "summary": result.summary.to_dict(),
        "findings": [finding.to_dict() for finding in result.findings],
    }


def format_json(result: ScanResult) -> str:
    """Export artifact serialized as indented JSON."""
    return json.dumps(build_export(result), indent=2)


def format_rich(result: ScanResult, console: Console) -> None:
    """Print per-file finding tables followed by a severity summary."""
    summary = result.summary

    if not result.has_findings:
        console.print(
            Panel(
                f"[green]No secrets found[/green] in {summary.total_files} files",
                title=TOOL_NAME,
            )
        )
        return

    for path, findings in result.grouped.items():
        table = Table(title=escape(path), title_justify="left", show_lines=False)
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Severity")
        table.add_column("Rule")
        table.add_column("Match", overflow="fold")

        for finding in findings:
            style = SEVERITY_STYLES[finding.severity]
            table.add_row(
                str(finding.line),
                f"[{style}]{finding.severity.value.upper()}[/{style}]",
                escape(finding.rule_name),
                escape(finding.matched),
            )
        console.print(table)

    counts = [
        (FindingSeverity.CRITICAL, summary.critical),
        (FindingSeverity.HIGH, summary.high),
        (FindingSeverity.MEDIUM, summary.medium),
        (FindingSeverity.LOW, summary.low),
    ]
    breakdown = "  ".join(
        f"[{SEVERITY_STYLES[severity]}]{severity.value}: {count}[/{SEVERITY_STYLES[severity]}]"
        for severity, count in counts
    )
    console.print(
        Panel(
            f"[bold]{summary.total_findings}[/bold] findings in "
            f"[bold]{len(result.grouped)}[/bold] of {summary.total_files} files\n{breakdown}",
            title=f"{TOOL_NAME} summary",
        )
    )


class JsonLinesSink(ProgressSink):
    """Writes each scan event as a ``{"event": ..., "data": ...}`` JSON line.

    Events are ``progress``, ``complete`` and ``error``. Every line is
    flushed immediately so a reader sees progress as it happens.
    """

    def __init__(self, stream: IO[str]) -> None:
        self.stream = stream

    def _emit(self, event: str, data: dict[str, Any]) -> None:
        self.stream.write(json.dumps({"event": event, "data": data}) + "\n")
        self.stream.flush()

    def progress(
        self,
        phase: ScanPhase,
        message: str,
        *,
        scanned: int | None = None,
        total_files: int | None = None,
        findings_count: int | None = None,
    ) -> None:
        event = ProgressEvent(
            phase=phase,
            message=message,
            scanned=scanned,
            total_files=total_files,
            findings_count=findings_count,
        )
        self._emit("progress", event.to_dict())

    def complete(self, result: ScanResult) -> None:
        self._emit("complete", result.to_dict())

    def error(self, message: str) -> None:
        self._emit("error", {"message": message})


class ConsoleSink(CollectingSink):
    """Collects events and echoes progress messages to a console."""

    def __init__(self, console: Console) -> None:
        super().__init__()
        self.console = console

    def progress(
        self,
        phase: ScanPhase,
        message: str,
        *,
        scanned: int | None = None,
        total_files: int | None = None,
        findings_count: int | None = None,
    ) -> None:
        super().progress(
            phase,
            message,
            scanned=scanned,
            total_files=total_files,
            findings_count=findings_count,
        )
        if phase == ScanPhase.SCANNING:
            self.console.print(f"[dim]{escape(message)} ({findings_count} findings)[/dim]")
        else:
            self.console.print(f"[dim]{escape(message)}[/dim]")
