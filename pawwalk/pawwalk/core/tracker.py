"""Path tracker — turns a live stream of GPS fixes into a clean walking path.

This is the core state machine. It depends on the GeolocationSource and
RecoveryStore protocols, not concrete implementations.

States: IDLE -> TRACKING -> IDLE. Every subscription is tagged with a
generation number; ``stop()`` bumps the generation, so fixes and callbacks
that resolve afterwards are recognised as stale and ignored.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING

import structlog

from pawwalk.core import filter as sample_filter
from pawwalk.core.errors import LocationError, LocationUnavailable, PermissionDenied
from pawwalk.core.geo import cumulative_distance, distance_m
from pawwalk.core.models import SpeedSample, TrackingSession
from pawwalk.core.speed import SpeedEstimator
from pawwalk.core.stats import TrackingStats

if TYPE_CHECKING:
    from pawwalk.core.filter import FilterConfig
    from pawwalk.core.models import GeoSample
    from pawwalk.geolocation.base import GeolocationSource, Subscription
    from pawwalk.storage.base import RecoveryStore

log = structlog.get_logger()

DEFAULT_FIX_TIMEOUT_S = 15.0


@dataclass(frozen=True)
class TrackerEvent:
    """Pushed to every listener after a state change.

    kind is one of: started, location, point, error, restored, stopped, cleared.
    """

    kind: str
    session: TrackingSession
    speed: SpeedSample | None = None
    error: LocationError | None = None


Listener = Callable[[TrackerEvent], None]


class PathTracker:
    """Owns the path of one walking session and mirrors it to a recovery store."""

    def __init__(
        self,
        source: GeolocationSource,
        recovery: RecoveryStore,
        session_key: str,
        *,
        filter_config: FilterConfig | None = None,
        speed: SpeedEstimator | None = None,
        fix_timeout_s: float = DEFAULT_FIX_TIMEOUT_S,
        high_accuracy: bool = True,
        persist_every: int = 1,
        stats: TrackingStats | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._recovery = recovery
        self._session_key = session_key
        self._filter_config = filter_config or sample_filter.FilterConfig()
        self._speed = speed or SpeedEstimator()
        self._fix_timeout_s = fix_timeout_s
        self._high_accuracy = high_accuracy
        self._persist_every = max(1, persist_every)
        self.stats = stats or TrackingStats()
        self._clock = clock

        self._path: list[GeoSample] = []
        self._current: GeoSample | None = None
        self._distance_m = 0.0
        self._started_at_ms: int | None = None
        self._tracking = False
        self._starting = False
        self._generation = 0
        self._subscription: Subscription | None = None
        self._unsaved = 0
        self._listeners: list[Listener] = []
        self.last_error: LocationError | None = None

    # -- queries ---------------------------------------------------------

    @property
    def session_key(self) -> str:
        return self._session_key

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def path(self) -> tuple[GeoSample, ...]:
        return tuple(self._path)

    @property
    def current_location(self) -> GeoSample | None:
        return self._current

    @property
    def distance_m(self) -> float:
        return self._distance_m

    @property
    def started_at_ms(self) -> int | None:
        return self._started_at_ms

    @property
    def speed(self) -> SpeedEstimator:
        return self._speed

    def snapshot(self) -> TrackingSession:
        return TrackingSession(
            is_tracking=self._tracking,
            path=tuple(self._path),
            current_location=self._current,
            cumulative_distance_m=self._distance_m,
            started_at_ms=self._started_at_ms,
        )

    # -- observers -------------------------------------------------------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, kind: str, *, speed: SpeedSample | None = None,
                error: LocationError | None = None) -> None:
        if not self._listeners:
            return
        event = TrackerEvent(kind=kind, session=self.snapshot(), speed=speed, error=error)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.error("tracker_listener_failed", session=self._session_key,
                          kind=kind, exc_info=True)

    # -- lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Begin (or resume) tracking.

        Raises the source's ``LocationError`` if the initial fix fails; the
        tracker then stays idle and any previously accepted path is kept.
        """
        if self._tracking or self._starting:
            log.debug("tracker_start_ignored", session=self._session_key,
                      tracking=self._tracking)
            return

        self._starting = True
        self._generation += 1
        generation = self._generation
        try:
            recovered = await self._load_recovery()
            fix = await self._fetch_fix()
            if generation != self._generation:
                # stop() was called while the fix was in flight.
                log.info("tracker_start_cancelled", session=self._session_key)
                return

            if recovered is not None and recovered.is_tracking and recovered.path:
                self._restore(recovered)
                if self._started_at_ms is None:
                    self._started_at_ms = int(self._clock() * 1000)
                self._tracking = True
                log.info("tracker_resumed", session=self._session_key,
                         points=len(self._path))
                self._notify("restored")
                await self._handle_sample(fix, generation)
                if generation != self._generation:
                    await self._settle_cancelled_start()
                    return
            else:
                self._reset_state()
                self._path = [fix]
                self._current = fix
                self._started_at_ms = int(self._clock() * 1000)
                self._tracking = True
                self.stats.record_received()
                self.stats.record_accepted()
                log.info("tracker_started", session=self._session_key,
                         accuracy_m=fix.accuracy_m)

            self.last_error = None
            await self._persist()
            if generation != self._generation:
                await self._settle_cancelled_start()
                return
            self._subscription = self._subscribe(generation)
            self._notify("started")
        except LocationError as exc:
            if generation != self._generation:
                log.info("tracker_start_cancelled", session=self._session_key)
                return
            self._report_error(exc)
            raise
        finally:
            self._starting = False

    async def stop(self) -> None:
        """Stop tracking. Safe to call repeatedly; the path is kept."""
        self._generation += 1
        if self._subscription is not None:
            self._source.unsubscribe(self._subscription)
            self._subscription = None
        if not self._tracking:
            return

        self._tracking = False
        await self._persist()
        log.info("tracker_stopped", session=self._session_key,
                 points=len(self._path), distance_m=round(self._distance_m, 1))
        self._notify("stopped")

    async def clear(self) -> None:
        """Drop the session and its recovery entry."""
        await self.stop()
        self._reset_state()
        try:
            await self._recovery.clear(self._session_key)
        except Exception:
            log.error("recovery_clear_failed", session=self._session_key, exc_info=True)
            self.stats.record_recovery_error()
        log.info("tracker_cleared", session=self._session_key)
        self._notify("cleared")

    async def on_visibility_change(self, visible: bool) -> None:
        """Handle the app moving to the background or back to the foreground."""
        if not self._tracking:
            return
        if not visible:
            if self._unsaved:
                await self._persist()
            return
        await self.resync()

    async def resync(self) -> None:
        """Catch up after a gap in continuous updates.

        Adopts the recovery entry only if it holds a longer path than memory,
        then forces one fresh fix through the normal update path.
        """
        if not self._tracking:
            return
        generation = self._generation

        recovered = await self._load_recovery()
        if not self._tracking or generation != self._generation:
            return
        if recovered is not None and len(recovered.path) > len(self._path):
            # Mid-walk adopt: the speed history still describes this walk.
            self._restore(recovered, reset_speed=False)
            log.info("tracker_recovered_longer_path", session=self._session_key,
                     points=len(self._path))
            self._notify("restored")

        try:
            fix = await self._fetch_fix()
        except LocationError as exc:
            if generation == self._generation:
                self._report_error(exc)
            return
        await self._handle_sample(fix, generation)

    # -- sample handling -------------------------------------------------

    def _subscribe(self, generation: int) -> Subscription:
        async def on_sample(sample: GeoSample) -> None:
            await self._handle_sample(sample, generation)

        async def on_error(exc: LocationError) -> None:
            await self._handle_error(exc, generation)

        return self._source.subscribe(on_sample, on_error)

    async def _handle_sample(self, sample: GeoSample, generation: int) -> None:
        if not self._tracking or generation != self._generation:
            self.stats.record_late()
            log.debug("late_sample_ignored", session=self._session_key)
            return

        self.stats.record_received()
        self._current = sample
        last = self._path[-1] if self._path else None

        reason = sample_filter.check(sample, last, self._filter_config)
        if reason is not None:
            self.stats.record_rejected(reason)
            log.debug("sample_rejected", session=self._session_key,
                      reason=reason.value, accuracy_m=sample.accuracy_m)
            self._notify("location")
            return

        self._path.append(sample)
        self.stats.record_accepted()
        speed = None
        if last is not None:
            self._distance_m += distance_m(last, sample)
            speed = self._speed.update(last, sample)
            if speed is None:
                self.stats.record_speed_discarded()

        self._unsaved += 1
        if self._unsaved >= self._persist_every:
            await self._persist()
        self._notify("point", speed=speed)

    async def _handle_error(self, exc: LocationError, generation: int) -> None:
        if generation != self._generation:
            return
        self._report_error(exc)
        if isinstance(exc, (PermissionDenied, LocationUnavailable)):
            await self.stop()

    def _report_error(self, exc: LocationError) -> None:
        self.last_error = exc
        self.stats.record_location_error()
        log.warning("location_error", session=self._session_key,
                    error=type(exc).__name__, detail=str(exc),
                    retryable=exc.retryable)
        self._notify("error", error=exc)

    async def _fetch_fix(self) -> GeoSample:
        try:
            return await self._source.get_current_fix(self._fix_timeout_s, self._high_accuracy)
        except LocationError:
            raise
        except Exception as exc:
            raise LocationUnavailable(str(exc) or type(exc).__name__) from exc

    # -- recovery --------------------------------------------------------

    async def _load_recovery(self) -> TrackingSession | None:
        try:
            return await self._recovery.load(self._session_key)
        except Exception:
            log.error("recovery_load_failed", session=self._session_key, exc_info=True)
            self.stats.record_recovery_error()
            return None

    async def _persist(self) -> None:
        try:
            await self._recovery.save(self._session_key, self.snapshot())
        except Exception:
            log.error("recovery_write_failed", session=self._session_key,
                      points=len(self._path), exc_info=True)
            self.stats.record_recovery_error()
            return
        self._unsaved = 0
        self.stats.record_recovery_write()

    async def _settle_cancelled_start(self) -> None:
        """stop() or clear() ran while start() was writing; the late write must
        not outlive their final state."""
        log.info("tracker_start_cancelled", session=self._session_key)
        if self._path:
            await self._persist()
            return
        try:
            await self._recovery.clear(self._session_key)
        except Exception:
            log.error("recovery_clear_failed", session=self._session_key, exc_info=True)
            self.stats.record_recovery_error()

    def _restore(self, recovered: TrackingSession, reset_speed: bool = True) -> None:
        self._path = list(recovered.path)
        self._current = recovered.current_location or (self._path[-1] if self._path else None)
        self._distance_m = cumulative_distance(self._path)
        self._started_at_ms = recovered.started_at_ms
        if reset_speed:
            self._speed.reset()

    def _reset_state(self) -> None:
        self._path = []
        self._current = None
        self._distance_m = 0.0
        self._started_at_ms = None
        self._unsaved = 0
        self._speed.reset()
