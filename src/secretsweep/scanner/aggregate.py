"""Collects findings for one scan and builds the final result."""

from __future__ import annotations

from collections.abc import Iterable

from secretsweep.scanner.base import Finding, ScanResult, ScanSummary


def group_by_file(findings: Iterable[Finding]) -> dict[str, list[Finding]]:
    """Group findings by file, keeping first-seen order of files and findings."""
    grouped: dict[str, list[Finding]] = {}
    for finding in findings:
        grouped.setdefault(finding.file, []).append(finding)
    return grouped


class ResultAggregator:
    """Accumulates findings in discovery order.

    The summary and grouping are only computed in ``finalize`` from the
    accumulated list, never kept as running counters.
    """

    def __init__(self) -> None:
        self._findings: list[Finding] = []

    def add(self, findings: Iterable[Finding]) -> None:
        self._findings.extend(findings)

    @property
    def findings(self) -> tuple[Finding, ...]:
        return tuple(self._findings)

    def __len__(self) -> int:
        return len(self._findings)

    def finalize(self, total_files: int) -> ScanResult:
        """Build the result.

        Args:
            total_files: Number of files the walker returned.

        Returns:
            ScanResult with the flat list, summary and per-file grouping.
        """
        findings = list(self._findings)
        return ScanResult(
            findings=findings,
            summary=ScanSummary.from_findings(findings, total_files),
            grouped=group_by_file(findings),
        )
