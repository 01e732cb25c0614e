"""Per-line rule matching for a single file."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from secretsweep.scanner.base import Finding
from secretsweep.scanner.comments import is_comment
from secretsweep.scanner.filters import is_false_positive
from secretsweep.scanner.patterns import RuleSet, mask_secret

logger = logging.getLogger(__name__)

MAX_LINE_CONTENT = 200

FalsePositiveCheck = Callable[[str, str, str, str], bool]


def relative_path(path: Path, root: Path) -> str:
    """Path of ``path`` relative to ``root`` with forward slashes."""
    return os.path.relpath(path, root).replace(os.sep, "/").replace("\\", "/")


class LineScanner:
    """Applies a RuleSet to every eligible line of a file.

    Blank lines and comment lines are skipped. Each rule contributes at most
    one candidate per line (its first match); candidates that pass the
    false-positive check are masked and turned into findings.
    """

    def __init__(
        self,
        ruleset: RuleSet,
        false_positive_check: FalsePositiveCheck = is_false_positive,
    ) -> None:
        self.ruleset = ruleset
        self.false_positive_check = false_positive_check

    def scan_file(self, path: Path, root: Path) -> list[Finding]:
        """Scan one file.

        Args:
            path: File to read.
            root: Scan root, used to compute the reported relative path.

        Returns:
            Findings in line order, then rule order. An unreadable file
            yields no findings.
        """
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug("Skipping unreadable file %s: %s", path, e)
            return []

        return self.scan_text(content, relative_path(path, root))

    def scan_text(self, content: str, file: str) -> list[Finding]:
        """Scan already-read content reported under the name ``file``."""
        findings: list[Finding] = []

        for index, line in enumerate(content.split("\n")):
            if not line.strip() or is_comment(line):
                continue

            for rule in self.ruleset.rules():
                match = rule.search(line)
                if match is None:
                    continue

                # Rules with a named "secret" group report only the value
                group = "secret" if "secret" in match.re.groupindex else 0
                matched_text = match.group(group)
                if self.false_positive_check(rule.id, matched_text, line, file):
                    continue

                findings.append(
                    Finding(
                        rule_id=rule.id,
                        rule_name=rule.name,
                        severity=rule.severity,
                        description=rule.description,
                        file=file,
                        line=index + 1,
                        matched=mask_secret(matched_text),
                        line_content=line.strip()[:MAX_LINE_CONTENT],
                    )
                )

        return findings
