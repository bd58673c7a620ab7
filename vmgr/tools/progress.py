"""Download progress tracking.

``ProgressTracker`` counts bytes under a lock and forwards a snapshot to a
sink at most every ``interval`` seconds. It is a side channel: sinks never
influence the download itself.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

__all__ = [
    "NullProgressSink",
    "ProgressSink",
    "ProgressSnapshot",
    "ProgressTracker",
    "format_bytes",
    "format_duration",
]


def format_bytes(count: int) -> str:
    """Human-readable size with binary units (``1.5 MB``)."""
    unit = 1024
    if count < unit:
        return f"{count} B"
    div, exp = unit, 0
    n = count // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{count / div:.1f} {'KMGTPE'[exp]}B"


def format_duration(seconds: float) -> str:
    if seconds < 0:
        return "0s"
    if seconds < 1:
        return "<1s"
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m{int(seconds) % 60}s"
    return f"{int(seconds // 3600)}h{int(seconds // 60) % 60}m"


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Point-in-time view of a transfer.

    Attributes:
        downloaded: Bytes on disk, resumed bytes included
        total: Full size when known
        elapsed: Seconds since the tracker started
    """

    downloaded: int
    total: int | None
    elapsed: float

    @property
    def speed(self) -> float:
        """Bytes per second."""
        return self.downloaded / max(self.elapsed, 0.001)

    @property
    def fraction(self) -> float | None:
        if not self.total:
            return None
        return min(self.downloaded / self.total, 1.0)

    @property
    def eta(self) -> float | None:
        if not self.total or self.speed <= 0:
            return None
        return max(self.total - self.downloaded, 0) / self.speed

    def summary(self) -> str:
        return (
            f"Downloaded {format_bytes(self.downloaded)} in {format_duration(self.elapsed)} "
            f"({format_bytes(int(self.speed))}/s)"
        )


class ProgressSink(Protocol):
    def on_progress(self, snapshot: ProgressSnapshot) -> None: ...

    def on_complete(self, snapshot: ProgressSnapshot) -> None: ...


class NullProgressSink:
    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        return None

    def on_complete(self, snapshot: ProgressSnapshot) -> None:
        return None


class ProgressTracker:
    """Thread-safe byte counter with throttled reporting.

    Usage:
        tracker = ProgressTracker(sink, total=size)
        tracker.advance(len(chunk))
        tracker.finish()
    """

    def __init__(
        self,
        sink: ProgressSink,
        *,
        total: int | None = None,
        initial: int = 0,
        interval: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sink = sink
        self._total = total
        self._count = initial
        self._interval = interval
        self._clock = clock
        self._start = clock()
        self._last_report = self._start
        self._lock = threading.Lock()

    @property
    def downloaded(self) -> int:
        with self._lock:
            return self._count

    def set_total(self, total: int | None) -> None:
        with self._lock:
            self._total = total

    def reset(self, initial: int = 0) -> None:
        """Restart the count (server ignored the range, or a retry began)."""
        with self._lock:
            self._count = initial

    def advance(self, n: int) -> None:
        snapshot: ProgressSnapshot | None = None
        with self._lock:
            self._count += n
            now = self._clock()
            if now - self._last_report >= self._interval:
                self._last_report = now
                snapshot = ProgressSnapshot(self._count, self._total, now - self._start)
        if snapshot is not None:
            self._sink.on_progress(snapshot)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(self._count, self._total, self._clock() - self._start)

    def finish(self) -> None:
        self._sink.on_complete(self.snapshot())
