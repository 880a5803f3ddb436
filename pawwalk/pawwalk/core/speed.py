"""Speed estimation from consecutive accepted path points."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from pawwalk.core.geo import distance_m
from pawwalk.core.models import SpeedSample

if TYPE_CHECKING:
    from pawwalk.core.models import GeoSample

DEFAULT_WINDOW = 100
DEFAULT_MAX_GAP_S = 60.0


class SpeedEstimator:
    """Instantaneous, max and rolling-average speed in km/h.

    Pairs whose time delta is non-positive (out-of-order or duplicate
    timestamps) or longer than ``max_gap_s`` (e.g. after a long background
    pause) are discarded instead of producing a misleading speed.
    """

    def __init__(self, window: int = DEFAULT_WINDOW, max_gap_s: float = DEFAULT_MAX_GAP_S) -> None:
        self._max_gap_s = max_gap_s
        self._history: deque[float] = deque(maxlen=window)
        self.current_speed_kmh: float = 0.0
        self.max_speed_kmh: float = 0.0
        self.discarded: int = 0

    @property
    def rolling_average_kmh(self) -> float:
        if not self._history:
            return 0.0
        return sum(self._history) / len(self._history)

    @property
    def sample_count(self) -> int:
        return len(self._history)

    def update(self, prev: GeoSample, curr: GeoSample) -> SpeedSample | None:
        dt = (curr.timestamp_ms - prev.timestamp_ms) / 1000
        if dt <= 0 or dt > self._max_gap_s:
            self.discarded += 1
            return None

        speed_kmh = distance_m(prev, curr) / dt * 3.6
        self._history.append(speed_kmh)
        self.current_speed_kmh = speed_kmh
        self.max_speed_kmh = max(self.max_speed_kmh, speed_kmh)
        return SpeedSample(
            instantaneous_kmh=speed_kmh,
            rolling_average_kmh=self.rolling_average_kmh,
        )

    def reset(self) -> None:
        self._history.clear()
        self.current_speed_kmh = 0.0
        self.max_speed_kmh = 0.0
        self.discarded = 0
