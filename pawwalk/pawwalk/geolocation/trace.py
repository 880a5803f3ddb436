"""GeolocationSource that plays back a recorded GPS trace.

Trace file format (JSON)::

    {"recorded_at": "...", "trace": [{"elapsed": 0.0, "location": {...}}, ...]}

``location`` holds a GeoSample dict, or null for a failed reading, which is
delivered to subscribers as a LocationTimeout.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from pawwalk.core.errors import LocationTimeout, LocationUnavailable
from pawwalk.core.models import GeoSample
from pawwalk.geolocation.base import Subscription

if TYPE_CHECKING:
    from pawwalk.geolocation.base import ErrorCallback, SampleCallback

log = structlog.get_logger()

# Clamp between consecutive entries so a long recorded pause does not stall playback.
MAX_PLAYBACK_INTERVAL_S = 5.0


def load_trace(path: str | Path) -> list[dict]:
    with open(path) as f:
        data = json.load(f)
    return data["trace"]


def save_trace(path: str | Path, samples: list[GeoSample], recorded_at: str) -> None:
    """Write samples as a trace file; ``elapsed`` comes from the timestamps."""
    t0 = samples[0].timestamp_ms if samples else 0
    trace = [
        {"elapsed": (s.timestamp_ms - t0) / 1000, "location": s.to_dict()}
        for s in samples
    ]
    with open(path, "w") as f:
        json.dump({"recorded_at": recorded_at, "trace": trace}, f, indent=2)


class TraceGeolocationSource:
    """Plays back trace entries to subscribers, honouring recorded timing."""

    def __init__(self, trace: list[dict], speed: float = 1.0) -> None:
        self._trace = trace
        self._speed = speed
        self._index = 0
        self._tasks: dict[str, asyncio.Task] = {}
        self._finished = asyncio.Event()

    @classmethod
    def from_file(cls, path: str | Path, speed: float = 1.0) -> TraceGeolocationSource:
        trace = load_trace(path)
        log.info("trace_loaded", path=str(path), entries=len(trace))
        return cls(trace, speed)

    def is_finished(self) -> bool:
        return self._index >= len(self._trace)

    async def wait_finished(self) -> None:
        await self._finished.wait()

    async def get_current_fix(self, timeout_s: float, high_accuracy: bool = True) -> GeoSample:
        """Return the next recorded fix, consuming failed entries as errors."""
        while self._index < len(self._trace):
            entry = self._trace[self._index]
            self._index += 1
            if entry.get("location"):
                return GeoSample.from_dict(entry["location"])
        raise LocationUnavailable("trace exhausted")

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback) -> Subscription:
        subscription = Subscription(on_sample=on_sample, on_error=on_error)
        self._tasks[subscription.id] = asyncio.create_task(self._play(subscription))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        task = self._tasks.pop(subscription.id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _interval(self) -> float:
        if self._index <= 0 or self._index >= len(self._trace):
            return 0.0
        prev_elapsed = self._trace[self._index - 1].get("elapsed", 0)
        curr_elapsed = self._trace[self._index].get("elapsed", 0)
        delta = (curr_elapsed - prev_elapsed) / self._speed
        return max(0.0, min(delta, MAX_PLAYBACK_INTERVAL_S))

    async def _play(self, subscription: Subscription) -> None:
        try:
            while subscription.active and self._index < len(self._trace):
                await asyncio.sleep(self._interval())
                if not subscription.active:
                    break
                entry = self._trace[self._index]
                self._index += 1
                if entry.get("location"):
                    await subscription.on_sample(GeoSample.from_dict(entry["location"]))
                else:
                    await subscription.on_error(LocationTimeout("no fix in trace entry"))
        finally:
            if self.is_finished():
                self._finished.set()
