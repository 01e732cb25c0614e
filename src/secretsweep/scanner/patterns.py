"""Detection rules and secret masking.

Rules are loaded from a JSON document: an ordered list of records with
``id``, ``name``, ``pattern``, ``severity`` and ``description``. Patterns are
compiled case-insensitively once, when the rule set is loaded, and the
resulting RuleSet is never modified afterwards.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator

from secretsweep.scanner.base import FindingSeverity, RuleLoadError

DEFAULT_RULES_PATH = Path(__file__).parent.parent / "rules.json"

REQUIRED_KEYS = ("id", "name", "pattern", "severity", "description")

MASK_MARKER = "****"
MASK_MIN_LENGTH = 12


@dataclass(frozen=True)
class Rule:
    """A named, severity-tagged pattern for one class of secret.

    Attributes:
        id: Unique identifier (e.g. "aws-access-key").
        name: Human-readable name.
        pattern: Compiled, case-insensitive regex.
        severity: Severity reported for matches.
        description: What this rule detects.
    """

    id: str
    name: str
    pattern: re.Pattern[str]
    severity: FindingSeverity
    description: str

    def search(self, line: str) -> re.Match[str] | None:
        """Return the first match in ``line``.

        ``Pattern.search`` keeps no position between calls, so every line
        is searched from its start.
        """
        return self.pattern.search(line)


class RuleSet:
    """Ordered, read-only collection of compiled rules."""

    def __init__(self, rules: list[Rule] | tuple[Rule, ...]) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)

    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def get(self, rule_id: str) -> Rule | None:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({len(self._rules)} rules)"


def compile_rule(record: dict[str, Any]) -> Rule:
    """Compile a single rule record.

    Args:
        record: Mapping with the keys listed in REQUIRED_KEYS.

    Returns:
        The compiled Rule.

    Raises:
        RuleLoadError: If a key is missing, the severity is unknown or the
            pattern does not compile.
    """
    if not isinstance(record, dict):
        raise RuleLoadError("Each rule entry must be an object")

    missing = [key for key in REQUIRED_KEYS if key not in record]
    if missing:
        rule_id = record.get("id", "<unknown>")
        raise RuleLoadError(f"Rule {rule_id} is missing keys: {', '.join(missing)}")

    rule_id = str(record["id"])
    try:
        severity = FindingSeverity(str(record["severity"]).lower())
    except ValueError as e:
        raise RuleLoadError(
            f"Rule {rule_id} has invalid severity '{record['severity']}'. "
            "Valid options: critical, high, medium, low"
        ) from e

    try:
        pattern = re.compile(str(record["pattern"]), re.IGNORECASE)
    except re.error as e:
        raise RuleLoadError(f"Rule {rule_id} has an invalid pattern: {e}") from e

    return Rule(
        id=rule_id,
        name=str(record["name"]),
        pattern=pattern,
        severity=severity,
        description=str(record["description"]),
    )


def parse_rules(raw: object) -> RuleSet:
    """Compile a decoded rule document into a RuleSet."""
    if not isinstance(raw, list) or not raw:
        raise RuleLoadError("Rules file must contain a non-empty list")

    rules: list[Rule] = []
    seen: set[str] = set()
    for record in raw:
        rule = compile_rule(record)
        if rule.id in seen:
            raise RuleLoadError(f"Duplicate rule id: {rule.id}")
        seen.add(rule.id)
        rules.append(rule)

    return RuleSet(rules)


def load_rules(path: str | Path = DEFAULT_RULES_PATH) -> RuleSet:
    """Load and compile rules from a JSON file.

    Args:
        path: Path to the rule source.

    Returns:
        RuleSet preserving the file's rule order.

    Raises:
        RuleLoadError: If the file cannot be read or parsed, or any rule is
            invalid. A broken rule set is never partially loaded.
    """
    rules_path = Path(path)
    try:
        with rules_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except FileNotFoundError as e:
        raise RuleLoadError(f"Rules file not found: {rules_path}") from e
    except OSError as e:
        raise RuleLoadError(f"Cannot read rules file {rules_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RuleLoadError(f"Rules file {rules_path} is not valid JSON: {e}") from e

    return parse_rules(raw)


@lru_cache(maxsize=None)
def default_ruleset() -> RuleSet:
    """Return the bundled rule set, loaded once per process."""
    return load_rules(DEFAULT_RULES_PATH)


def mask_secret(text: str) -> str:
    """Mask matched text before it is reported.

    Text longer than 12 characters keeps its first 6 and last 4 characters
    around a fixed ``****`` marker. Shorter text is returned unchanged, so
    short secrets are reported in full.

    Args:
        text: The matched text.

    Returns:
        Masked text, e.g. "AKIAIO****MPLE".
    """
    if len(text) <= MASK_MIN_LENGTH:
        return text
    return f"{text[:6]}{MASK_MARKER}{text[-4:]}"
