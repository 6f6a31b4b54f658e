from __future__ import annotations

import itertools
import logging
import sys
import time
from typing import IO, Any, Callable, Optional

logger = logging.getLogger(__name__)

SPINNER_FRAMES = ("/", "-", "\\", "|")


def countdown(
    seconds: int,
    *,
    label: str = "Waiting for config file creation",
    stream: Optional[IO[str]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Print a one-line countdown, rewriting it in place once per second."""

    out = stream or sys.stdout
    remaining = int(seconds)
    while remaining > 0:
        out.write(f"\r{label}: {remaining} seconds remaining...")
        out.flush()
        sleep(1)
        remaining -= 1
    out.write("\nContinuing with installation...\n")
    out.flush()


def wait_with_spinner(
    proc: Any,
    label: str,
    *,
    stream: Optional[IO[str]] = None,
    interval: float = 0.2,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Animate a spinner until ``proc`` exits; return its exit status.

    Purely cosmetic: the only guarantee is that the process has exited when
    this returns.
    """

    out = stream or sys.stdout
    out.write(f"{label}... ")
    out.flush()
    for frame in itertools.cycle(SPINNER_FRAMES):
        if proc.poll() is not None:
            break
        out.write(f"\r[ {frame} ] {label}... ")
        out.flush()
        sleep(interval)
    out.write("\n")
    out.flush()
    return int(proc.returncode or 0)


class ProgressTracker:
    """Log percentage milestones for a byte count of known total."""

    def __init__(self, total: Optional[int], label: str, *, step: int = 10) -> None:
        self.total = int(total or 0)
        self.label = label
        self.step = step
        self.done = 0
        self._next_mark = step

    def update(self, n: int) -> None:
        self.done += n
        if self.total <= 0:
            return
        pct = min(100, self.done * 100 // self.total)
        if pct >= self._next_mark:
            logger.info("%s: %d%% (%d/%d bytes)", self.label, pct, self.done, self.total)
            self._next_mark = (pct // self.step + 1) * self.step

    def finish(self) -> None:
        if self.total <= 0:
            logger.info("%s: %d bytes", self.label, self.done)
        elif self._next_mark <= 100:
            logger.info("%s: 100%% (%d/%d bytes)", self.label, self.done, self.total)
            self._next_mark = 100 + self.step


class ProgressReader:
    """Read-only file wrapper feeding a ProgressTracker."""

    def __init__(self, fileobj: IO[bytes], tracker: ProgressTracker) -> None:
        self._f = fileobj
        self.tracker = tracker

    def read(self, size: int = -1) -> bytes:
        data = self._f.read(size)
        if data:
            self.tracker.update(len(data))
        return data

    def close(self) -> None:
        self._f.close()
