"""
In-memory, fixed-window request quota keyed by caller identity.

Records live for the lifetime of the process. Each caller gets `points`
requests per window; the window starts at the caller's first consumption
and the counter resets once it has elapsed.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable


class QuotaExceededError(Exception):
    def __init__(self, key: str, ms_before_next: float):
        self.key = key
        self.ms_before_next = max(0.0, ms_before_next)
        super().__init__(f"Quota exhausted for {key}, resets in {self.ms_before_next:.0f}ms")


@dataclass
class QuotaRecord:
    consumed_points: int
    resets_at: float


class QuotaLimiter:
    def __init__(
        self,
        points: int,
        duration_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.points = points
        self.duration_seconds = duration_seconds
        self._clock = clock
        self._records: dict[str, QuotaRecord] = {}
        self._lock = threading.Lock()

    def _live_record(self, key: str, now: float) -> QuotaRecord | None:
        record = self._records.get(key)
        if record is not None and now >= record.resets_at:
            del self._records[key]
            return None
        return record

    def consume(self, key: str) -> QuotaRecord:
        """Take one point for `key` or raise QuotaExceededError without consuming."""
        with self._lock:
            now = self._clock()
            record = self._live_record(key, now)
            if record is None:
                record = QuotaRecord(consumed_points=0, resets_at=now + self.duration_seconds)
                self._records[key] = record

            if record.consumed_points >= self.points:
                raise QuotaExceededError(key, (record.resets_at - now) * 1000)

            record.consumed_points += 1
            return QuotaRecord(record.consumed_points, record.resets_at)

    def get(self, key: str) -> QuotaRecord | None:
        with self._lock:
            record = self._live_record(key, self._clock())
            if record is None:
                return None
            return QuotaRecord(record.consumed_points, record.resets_at)

    def remaining(self, key: str) -> int:
        record = self.get(key)
        if record is None:
            return self.points
        return max(0, self.points - record.consumed_points)

    def reset(self):
        with self._lock:
            self._records.clear()
