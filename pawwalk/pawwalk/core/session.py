"""Walk session — runs one walk from start to a saved record.

This is the caller of the record builder: it stops the tracker, builds the
record, and hands it to the walk gateway. It depends on the WalkGateway
protocol, not a concrete backend.
"""

from __future__ import annotations

import time
from typing import Callable, Protocol, TYPE_CHECKING

import structlog

from pawwalk.core.errors import PersistenceError
from pawwalk.core.record import stamp_delta

if TYPE_CHECKING:
    from pawwalk.core.models import CalendarStamp, WalkingRecord
    from pawwalk.core.record import WalkingRecordBuilder
    from pawwalk.core.tracker import PathTracker
    from pawwalk.storage.base import WalkGateway

log = structlog.get_logger()


class StepCounter(Protocol):
    """Data source: a pedometer reporting steps since it was started."""

    steps: int


class WalkSession:
    """Ties a path tracker, an optional step counter and a gateway together."""

    def __init__(
        self,
        tracker: PathTracker,
        gateway: WalkGateway,
        builder: WalkingRecordBuilder,
        *,
        step_counter: StepCounter | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tracker = tracker
        self._gateway = gateway
        self._builder = builder
        self._step_counter = step_counter
        self._clock = clock
        self._steps_at_start = 0
        self._ended_at_ms: int | None = None
        self._pending: WalkingRecord | None = None
        self._walk_saved = False
        self.stamp: CalendarStamp | None = None

    @property
    def tracker(self) -> PathTracker:
        return self._tracker

    @property
    def pending_record(self) -> WalkingRecord | None:
        """A built record whose save has not succeeded yet."""
        return self._pending

    @property
    def elapsed_seconds(self) -> int:
        started = self._tracker.started_at_ms
        if started is None:
            return 0
        end_ms = self._ended_at_ms if self._ended_at_ms is not None else int(self._clock() * 1000)
        return max(0, (end_ms - started) // 1000)

    @property
    def steps(self) -> int | None:
        if self._step_counter is None:
            return None
        return max(0, self._step_counter.steps - self._steps_at_start)

    async def begin(self) -> None:
        """Start tracking. Location errors propagate from the tracker.

        Raises ``PersistenceError`` while a finished walk is still unsaved;
        retry ``finish()`` or call ``discard()`` first.
        """
        if self._pending is not None:
            log.warning("walk_begin_refused", walk_id=self._pending.id,
                        points=len(self._pending.path))
            raise PersistenceError(f"unsaved walk {self._pending.id} pending")
        self._ended_at_ms = None
        self.stamp = None
        if self._step_counter is not None:
            self._steps_at_start = self._step_counter.steps
        await self._tracker.start()

    async def finish(self) -> WalkingRecord:
        """Stop the walk, save its record and stamp, then clear the tracker.

        On a gateway failure this raises ``PersistenceError`` and keeps both
        the built record (retried by the next ``finish()``) and the tracker's
        recovery entry.
        """
        if self._pending is None:
            await self._tracker.stop()
            self._pending = self._build()
            self._walk_saved = False

        record = self._pending
        try:
            if not self._walk_saved:
                await self._gateway.save_walk(record)
                self._walk_saved = True
            self.stamp = await self._gateway.upsert_stamp(
                record.pet_id, record.date, stamp_delta(record),
            )
        except PersistenceError:
            log.error("walk_save_failed", walk_id=record.id,
                      points=len(record.path), exc_info=True)
            raise

        self._pending = None
        await self._tracker.clear()
        log.info("walk_saved", walk_id=record.id, pet=record.pet_id,
                 distance_m=round(record.distance_m, 1),
                 elapsed_s=record.elapsed_seconds, goal=record.goal_achieved)
        return record

    async def discard(self) -> None:
        """Abandon the walk without saving anything."""
        self._pending = None
        await self._tracker.clear()
        log.info("walk_discarded", session=self._tracker.session_key)

    def _build(self) -> WalkingRecord:
        self._ended_at_ms = int(self._clock() * 1000)
        started = self._tracker.started_at_ms
        if started is None:
            started = self._ended_at_ms

        speed = self._tracker.speed
        has_speed = speed.sample_count > 0
        path = self._tracker.path
        return self._builder.build(
            elapsed_seconds=self.elapsed_seconds,
            path=path,
            started_at_ms=started,
            ended_at_ms=self._ended_at_ms,
            path_points=path,
            steps=self.steps,
            avg_speed_kmh=speed.rolling_average_kmh if has_speed else None,
            max_speed_kmh=speed.max_speed_kmh if has_speed else None,
        )
