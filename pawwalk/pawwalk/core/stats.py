"""Tracking statistics.

In-memory counters describing how the sample stream was handled during a
session. No framework dependencies.
"""

from __future__ import annotations

import threading
import time

from pawwalk.core.filter import Rejection


class TrackingStats:
    """Thread-safe counters for one path tracker.

    Rejections are broken down by filter reason so a deployment can tell
    whether its thresholds are too strict (lots of ``too_close``) or the
    device is simply imprecise (lots of ``accuracy``).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()

        self.samples_received: int = 0
        self.samples_accepted: int = 0
        self.late_samples_ignored: int = 0
        self.speed_updates_discarded: int = 0
        self.recovery_writes: int = 0
        self.recovery_errors: int = 0
        self.location_errors: int = 0
        self._rejected: dict[str, int] = {r.value: 0 for r in Rejection}

    def record_received(self) -> None:
        with self._lock:
            self.samples_received += 1

    def record_accepted(self) -> None:
        with self._lock:
            self.samples_accepted += 1

    def record_rejected(self, reason: Rejection) -> None:
        with self._lock:
            self._rejected[reason.value] += 1

    def record_late(self) -> None:
        with self._lock:
            self.late_samples_ignored += 1

    def record_speed_discarded(self) -> None:
        with self._lock:
            self.speed_updates_discarded += 1

    def record_recovery_write(self) -> None:
        with self._lock:
            self.recovery_writes += 1

    def record_recovery_error(self) -> None:
        with self._lock:
            self.recovery_errors += 1

    def record_location_error(self) -> None:
        with self._lock:
            self.location_errors += 1

    @property
    def samples_rejected(self) -> int:
        with self._lock:
            return sum(self._rejected.values())

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all counters."""
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "samples_received": self.samples_received,
                "samples_accepted": self.samples_accepted,
                "samples_rejected": dict(self._rejected),
                "late_samples_ignored": self.late_samples_ignored,
                "speed_updates_discarded": self.speed_updates_discarded,
                "recovery_writes": self.recovery_writes,
                "recovery_errors": self.recovery_errors,
                "location_errors": self.location_errors,
            }
