"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from secretsweep.scanner.base import Finding, FindingSeverity
from secretsweep.scanner.engine import ScanEngine
from secretsweep.scanner.patterns import RuleSet, default_ruleset

REAL_PASSWORD_LINE = 'password = "hunter2_real_value_123"'


@pytest.fixture
def ruleset() -> RuleSet:
    """The bundled rule set."""
    return default_ruleset()


@pytest.fixture
def engine(ruleset) -> ScanEngine:
    """Engine over the bundled rules with a small progress interval."""
    return ScanEngine(ruleset, progress_interval=2)


@pytest.fixture
def write_tree(tmp_path):
    """Write a mapping of relative path -> content under tmp_path."""

    def _write(files: dict[str, str], root: Path | None = None) -> Path:
        base = root or tmp_path
        for rel, content in files.items():
            target = base / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return base

    return _write


@pytest.fixture
def make_finding():
    """Factory for findings with sensible defaults."""

    def _make(
        file: str = "app.py",
        line: int = 1,
        severity: FindingSeverity = FindingSeverity.HIGH,
        rule_id: str = "generic-password",
    ) -> Finding:
        return Finding(
            rule_id=rule_id,
            rule_name=rule_id.replace("-", " ").title(),
            severity=severity,
            description="test finding",
            file=file,
            line=line,
            matched="hunter****_123",
            line_content=REAL_PASSWORD_LINE,
        )

    return _make
