"""Secret scanning engine.

This module provides:
- RuleSet: Compiled detection rules loaded from a JSON rule source
- FileWalker: File discovery with exclusion policy
- LineScanner: Per-line matching with false-positive filtering and masking
- ResultAggregator: Summary and per-file grouping of findings
- ScanEngine: Drives a scan and reports through a ProgressSink
"""

from secretsweep.scanner.aggregate import ResultAggregator, group_by_file
from secretsweep.scanner.base import (
    FetchError,
    Finding,
    FindingSeverity,
    RuleLoadError,
    ScanCancelledError,
    ScanResult,
    ScanSummary,
    SecretSweepError,
    SourceError,
)
from secretsweep.scanner.comments import is_comment
from secretsweep.scanner.engine import ScanEngine, health
from secretsweep.scanner.filters import is_false_positive
from secretsweep.scanner.lines import LineScanner
from secretsweep.scanner.patterns import (
    Rule,
    RuleSet,
    default_ruleset,
    load_rules,
    mask_secret,
)
from secretsweep.scanner.progress import (
    CancellationToken,
    CollectingSink,
    ProgressEvent,
    ProgressSink,
    ScanPhase,
)
from secretsweep.scanner.sources import RepoFetcher, ScanRequest, SourceType
from secretsweep.scanner.walker import FileWalker

__all__ = [
    "CancellationToken",
    "CollectingSink",
    "FetchError",
    "FileWalker",
    "Finding",
    "FindingSeverity",
    "LineScanner",
    "ProgressEvent",
    "ProgressSink",
    "ResultAggregator",
    "Rule",
    "RuleLoadError",
    "RepoFetcher",
    "RuleSet",
    "ScanCancelledError",
    "ScanEngine",
    "ScanPhase",
    "ScanRequest",
    "ScanResult",
    "ScanSummary",
    "SecretSweepError",
    "SourceError",
    "SourceType",
    "default_ruleset",
    "group_by_file",
    "health",
    "is_comment",
    "is_false_positive",
    "load_rules",
    "mask_secret",
]
