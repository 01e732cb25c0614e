"""Core data types for the secret scanner.

Findings, summaries and results produced by a scan, together with the
exception hierarchy shared by the scanner, the source fetcher and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SecretSweepError(Exception):
    """Base exception for secretsweep."""

    pass


class RuleLoadError(SecretSweepError):
    """Rule source could not be read or a rule failed to compile."""

    pass


class SourceError(SecretSweepError):
    """Scan request is missing required inputs or points nowhere."""

    pass


class FetchError(SecretSweepError):
    """Cloning a remote repository failed."""

    pass


class ScanCancelledError(SecretSweepError):
    """Scan was cancelled by the caller."""

    pass


class FindingSeverity(Enum):
    """Severity of a rule match, ordered from LOW to CRITICAL."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK: dict[FindingSeverity, int] = {
    FindingSeverity.LOW: 0,
    FindingSeverity.MEDIUM: 1,
    FindingSeverity.HIGH: 2,
    FindingSeverity.CRITICAL: 3,
}


@dataclass(frozen=True, eq=False)
class Finding:
    """One rule match on one line, after filtering and masking.

    Findings compare by identity: two matches with identical fields on
    different scans are still distinct findings.

    Attributes:
        rule_id: Identifier of the matching rule.
        rule_name: Human-readable rule name.
        severity: Severity taken from the rule.
        description: Rule description.
        file: Path relative to the scan root, always with ``/`` separators.
        line: 1-based line number.
        matched: Masked matched text.
        line_content: Original line, stripped and truncated to 200 characters.
    """

    rule_id: str
    rule_name: str
    severity: FindingSeverity
    description: str
    file: str
    line: int
    matched: str
    line_content: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "ruleName": self.rule_name,
            "severity": self.severity.value,
            "description": self.description,
            "file": self.file,
            "line": self.line,
            "matched": self.matched,
            "lineContent": self.line_content,
        }


@dataclass(frozen=True)
class ScanSummary:
    """Per-severity counts for a completed scan."""

    total_files: int = 0
    total_findings: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @classmethod
    def from_findings(cls, findings: list[Finding] | tuple[Finding, ...], total_files: int) -> ScanSummary:
        """Build a summary from the full finding list.

        Args:
            findings: Every finding of the scan.
            total_files: Number of files the walker returned.

        Returns:
            ScanSummary whose severity counts always add up to the total.
        """
        counts = {severity: 0 for severity in FindingSeverity}
        for finding in findings:
            counts[finding.severity] += 1

        return cls(
            total_files=total_files,
            total_findings=len(findings),
            critical=counts[FindingSeverity.CRITICAL],
            high=counts[FindingSeverity.HIGH],
            medium=counts[FindingSeverity.MEDIUM],
            low=counts[FindingSeverity.LOW],
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "totalFiles": self.total_files,
            "totalFindings": self.total_findings,
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
        }


@dataclass
class ScanResult:
    """Findings of one scan, with their summary and per-file grouping."""

    findings: list[Finding] = field(default_factory=list)
    summary: ScanSummary = field(default_factory=ScanSummary)
    grouped: dict[str, list[Finding]] = field(default_factory=dict)

    @property
    def has_findings(self) -> bool:
        return bool(self.findings)

    @property
    def highest_severity(self) -> FindingSeverity | None:
        if not self.findings:
            return None
        return max(f.severity for f in self.findings)

    @property
    def exit_code(self) -> int:
        """Exit code for CI usage.

        Returns:
            1 for critical findings, 2 for high, 3 for medium, 0 otherwise.
        """
        highest = self.highest_severity
        if highest == FindingSeverity.CRITICAL:
            return 1
        if highest == FindingSeverity.HIGH:
            return 2
        if highest == FindingSeverity.MEDIUM:
            return 3
        return 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "findings": [f.to_dict() for f in self.findings],
            "grouped": {
                path: [f.to_dict() for f in group] for path, group in self.grouped.items()
            },
        }
