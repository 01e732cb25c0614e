"""Scan engine - drives one scan from request to result.

The ScanEngine is responsible for:
- Validating the scan request before any file is touched
- Materializing remote sources in an ephemeral workspace
- Walking and scanning files sequentially
- Reporting phases, periodic progress and the final result to a sink
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from secretsweep.scanner.aggregate import ResultAggregator
from secretsweep.scanner.base import (
    FetchError,
    ScanCancelledError,
    ScanResult,
    SourceError,
)
from secretsweep.scanner.lines import LineScanner
from secretsweep.scanner.patterns import RuleSet
from secretsweep.scanner.progress import (
    CancellationToken,
    NullSink,
    ProgressSink,
    ScanPhase,
)
from secretsweep.scanner.sources import (
    RepoFetcher,
    ScanRequest,
    SourceType,
    ephemeral_workspace,
    validation_message,
)
from secretsweep.scanner.walker import FileWalker

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_INTERVAL = 50


class ScanEngine:
    """Runs scans against a shared, read-only RuleSet.

    One engine can serve any number of scans, including concurrent ones:
    it holds no per-scan state.

    Example:
        engine = ScanEngine(default_ruleset())
        sink = CollectingSink()
        result = engine.run({"source": "local", "path": "."}, sink)
        print(result.summary.total_findings)
    """

    def __init__(
        self,
        ruleset: RuleSet,
        walker: FileWalker | None = None,
        fetcher: RepoFetcher | None = None,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    ) -> None:
        """Initialize the engine.

        Args:
            ruleset: Compiled rules shared by every scan.
            walker: File discovery policy. Uses defaults if None.
            fetcher: Remote repository fetcher. Uses defaults if None.
            progress_interval: Emit a scanning event every this many files.
        """
        self.ruleset = ruleset
        self.walker = walker or FileWalker()
        self.fetcher = fetcher or RepoFetcher()
        self.progress_interval = max(1, progress_interval)
        self.line_scanner = LineScanner(ruleset)

    def run(
        self,
        request: ScanRequest | Mapping[str, Any],
        sink: ProgressSink,
        cancel: CancellationToken | None = None,
    ) -> ScanResult | None:
        """Run one scan and report it through ``sink``.

        Exactly one terminal event is emitted: ``complete`` with the result,
        or ``error`` with a message. Nothing is raised to the caller.

        Args:
            request: A ScanRequest, or raw parameters to validate into one.
            sink: Receives progress and the terminal event.
            cancel: Optional token polled between phases and files.

        Returns:
            The ScanResult, or None if the scan failed.
        """
        cancel = cancel or CancellationToken()

        try:
            scan_request = (
                request
                if isinstance(request, ScanRequest)
                else ScanRequest.model_validate(dict(request))
            )
        except ValidationError as e:
            message = validation_message(e)
            logger.warning("Rejected scan request: %s", message)
            sink.error(message)
            return None

        try:
            result = self._run(scan_request, sink, cancel)
        except (SourceError, FetchError, ScanCancelledError) as e:
            logger.warning("Scan of %s failed: %s", scan_request.describe(), e)
            sink.error(str(e))
            return None
        except Exception as e:
            logger.exception("Scan of %s failed", scan_request.describe())
            sink.error(str(e) or "Scan failed")
            return None

        sink.complete(result)
        return result

    def _run(
        self, request: ScanRequest, sink: ProgressSink, cancel: CancellationToken
    ) -> ScanResult:
        cancel.raise_if_cancelled()

        if not request.is_remote:
            root = Path(str(request.path))
            if not root.is_dir():
                raise SourceError(f"Directory not found: {request.path}")
            return self.scan_directory(root, sink, cancel)

        label = "Azure DevOps repository" if request.source == SourceType.AZURE_DEVOPS else "repository"
        with ephemeral_workspace() as workspace:
            sink.progress(ScanPhase.CLONING, f"Cloning {label}...")
            logger.info("Cloning %s", request.describe())
            self.fetcher.fetch(request, workspace)
            cancel.raise_if_cancelled()
            sink.progress(ScanPhase.CLONED, "Repository cloned successfully")
            return self.scan_directory(workspace, sink, cancel)

    def scan_directory(
        self,
        root: Path,
        sink: ProgressSink | None = None,
        cancel: CancellationToken | None = None,
    ) -> ScanResult:
        """Walk and scan ``root`` one file at a time.

        Emits discovery events, then a scanning event for the first file,
        every ``progress_interval`` files after it, and always the last
        file. Does not emit the terminal event.

        Raises:
            ScanCancelledError: If ``cancel`` fires between files.
        """
        sink = sink or NullSink()
        cancel = cancel or CancellationToken()
        root_path = Path(root).resolve()

        cancel.raise_if_cancelled()
        sink.progress(ScanPhase.DISCOVERING, "Discovering files...")
        files = self.walker.walk(root_path)
        total = len(files)
        logger.info("Discovered %d files under %s", total, root_path)

        cancel.raise_if_cancelled()
        sink.progress(ScanPhase.DISCOVERED, f"Found {total} files to scan", total_files=total)

        aggregator = ResultAggregator()
        for index, path in enumerate(files):
            cancel.raise_if_cancelled()
            aggregator.add(self.line_scanner.scan_file(path, root_path))

            if index % self.progress_interval == 0 or index == total - 1:
                sink.progress(
                    ScanPhase.SCANNING,
                    f"Scanning... {index + 1}/{total} files",
                    scanned=index + 1,
                    total_files=total,
                    findings_count=len(aggregator),
                )

        result = aggregator.finalize(total)
        logger.info(
            "Scanned %d files, %d findings", total, result.summary.total_findings
        )
        return result


def health(ruleset: RuleSet) -> dict[str, Any]:
    """Status payload reporting the number of active rules."""
    return {"status": "ok", "rules": len(ruleset)}
