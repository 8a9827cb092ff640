"""Wall-clock timings of the stages of one page conversion."""

import time
from contextlib import contextmanager
from typing import Iterator


class StageTimers:
    """Elapsed seconds per stage, in the order stages first ran.

    A stage that raises is still timed, so a failure log can show where
    the time went.
    """

    def __init__(self) -> None:
        self.totals: dict[str, float] = {}
        self._created = time.perf_counter()

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            self.totals[name] = self.totals.get(name, 0.0) + time.perf_counter() - started

    @property
    def wall_seconds(self) -> float:
        return time.perf_counter() - self._created

    def as_millis(self) -> dict[str, float]:
        """Per-stage milliseconds plus `total`, for a log line."""
        millis = {name: round(seconds * 1000, 1) for name, seconds in self.totals.items()}
        millis["total"] = round(self.wall_seconds * 1000, 1)
        return millis
