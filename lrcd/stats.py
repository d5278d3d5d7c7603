"""Statistics tracking and reporting for the lrcd hub."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .registry import NickRegistry


class StatsManager:
    """
    Lifetime counters for the hub.

    Tracks connections, lines and bytes in/out, nickname changes and
    conflicts, routed messages, usage errors and write failures.
    """

    COUNTERS = (
        "connections",
        "disconnects",
        "lines_in",
        "bytes_in",
        "bytes_out",
        "nick_changes",
        "nick_conflicts",
        "broadcasts",
        "privates",
        "private_misses",
        "usage_errors",
        "write_failures",
    )

    def __init__(self, registry: NickRegistry | None = None) -> None:
        self.registry = registry
        self._lock = threading.Lock()
        self.started_wall_time: float | None = None
        self.started_monotonic: float | None = None
        self._counters: dict[str, int] = dict.fromkeys(self.COUNTERS, 0)

    def set_start_time(self) -> None:
        self.started_wall_time = time.time()
        self.started_monotonic = time.monotonic()

    def inc(self, key: str, delta: int = 1) -> None:
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + int(delta)

    def get(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def format_stats(self) -> str:
        """Format current statistics as a human-readable multi-line string."""
        from . import __version__

        started = self.started_monotonic
        uptime_s = (time.monotonic() - started) if started is not None else 0.0
        registered = len(self.registry) if self.registry is not None else 0
        c = self.snapshot()

        lines: list[str] = []
        lines.append(f"lrcd {__version__} stats")
        lines.append(f"uptime_s={uptime_s:.1f}")
        lines.append(
            "clients: registered={} connections={} disconnects={}".format(
                registered,
                c["connections"],
                c["disconnects"],
            )
        )
        lines.append(
            "io: lines_in={} bytes_in={} bytes_out={} write_failures={}".format(
                c["lines_in"],
                c["bytes_in"],
                c["bytes_out"],
                c["write_failures"],
            )
        )
        lines.append(
            "events: nick_changes={} nick_conflicts={} broadcasts={} "
            "privates={} private_misses={} usage_errors={}".format(
                c["nick_changes"],
                c["nick_conflicts"],
                c["broadcasts"],
                c["privates"],
                c["private_misses"],
                c["usage_errors"],
            )
        )
        return "\n".join(lines)
