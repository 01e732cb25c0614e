"""Progress reporting and cancellation for the scan driver.

The engine only talks to a ProgressSink. Adapters for a concrete transport
(terminal output, JSON lines, an HTTP event stream) implement the sink and
map its calls onto their own wire format.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from secretsweep.scanner.base import ScanCancelledError

if TYPE_CHECKING:
    from secretsweep.scanner.base import ScanResult


class ScanPhase(Enum):
    """Phases reported through ``ProgressSink.progress``."""

    CLONING = "cloning"
    CLONED = "cloned"
    DISCOVERING = "discovering"
    DISCOVERED = "discovered"
    SCANNING = "scanning"


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress update."""

    phase: ScanPhase
    message: str
    scanned: int | None = None
    total_files: int | None = None
    findings_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire payload. Counters that were not supplied are left out."""
        data: dict[str, Any] = {"phase": self.phase.value, "message": self.message}
        if self.scanned is not None:
            data["scanned"] = self.scanned
        if self.total_files is not None:
            data["totalFiles"] = self.total_files
        if self.findings_count is not None:
            data["findingsCount"] = self.findings_count
        return data


class ProgressSink(ABC):
    """Abstract consumer of scan events.

    Implementations must provide:
    - progress: Phase transitions and periodic scanning updates
    - complete: Terminal event carrying the result
    - error: Terminal event carrying a failure message

    Exactly one of ``complete`` or ``error`` is called per scan.
    """

    @abstractmethod
    def progress(
        self,
        phase: ScanPhase,
        message: str,
        *,
        scanned: int | None = None,
        total_files: int | None = None,
        findings_count: int | None = None,
    ) -> None:
        ...

    @abstractmethod
    def complete(self, result: ScanResult) -> None:
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        ...


class NullSink(ProgressSink):
    """Sink that discards every event."""

    def progress(self, phase, message, *, scanned=None, total_files=None, findings_count=None) -> None:
        pass

    def complete(self, result: ScanResult) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class CollectingSink(ProgressSink):
    """Sink that records every event in memory."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []
        self.result: ScanResult | None = None
        self.error_message: str | None = None

    def progress(
        self,
        phase: ScanPhase,
        message: str,
        *,
        scanned: int | None = None,
        total_files: int | None = None,
        findings_count: int | None = None,
    ) -> None:
        self.events.append(
            ProgressEvent(
                phase=phase,
                message=message,
                scanned=scanned,
                total_files=total_files,
                findings_count=findings_count,
            )
        )

    def complete(self, result: ScanResult) -> None:
        self.result = result

    def error(self, message: str) -> None:
        self.error_message = message

    @property
    def phases(self) -> list[ScanPhase]:
        return [event.phase for event in self.events]

    @property
    def finished(self) -> bool:
        return self.result is not None or self.error_message is not None


class CancellationToken:
    """Thread-safe flag the driver polls between files and phases.

    The transport layer owns the token and calls ``cancel`` when its client
    goes away. The engine never depends on the transport's own types.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ScanCancelledError("Scan cancelled")
