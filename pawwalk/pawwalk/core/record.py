"""Walking record builder.

Turns a finished session (path, timing, optional steps and speed stats) into
an immutable WalkingRecord. Performs no I/O; saving is the caller's job.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Sequence, Union
from uuid import uuid4

from pawwalk.core.geo import cumulative_distance, path_to_coordinates
from pawwalk.core.models import GeoSample, StampDelta, WalkingRecord

# Daily walking goal: 20 minutes.
GOAL_SECONDS = 1200

Coordinate = tuple[float, float]
PathInput = Union[Sequence[GeoSample], Sequence[Coordinate]]


def _local_datetime(timestamp_ms: int, tz: tzinfo | None) -> datetime:
    """Timezone-aware datetime; ``tz=None`` means the system local zone."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=tz)
    return dt if tz is not None else dt.astimezone()


def _normalize_path(path: PathInput) -> tuple[tuple[Coordinate, ...], tuple[GeoSample, ...] | None]:
    """Split a path given as points or as (lon, lat) pairs."""
    if path and isinstance(path[0], GeoSample):
        points = tuple(path)  # type: ignore[arg-type]
        return path_to_coordinates(points), points
    return tuple((float(lon), float(lat)) for lon, lat in path), None  # type: ignore[misc]


def _coordinate_distance(coords: Sequence[Coordinate]) -> float:
    points = [GeoSample(latitude=lat, longitude=lon) for lon, lat in coords]
    return cumulative_distance(points)


class WalkingRecordBuilder:
    def __init__(self, pet_id: str, goal_seconds: int = GOAL_SECONDS, tz: tzinfo | None = None) -> None:
        self._pet_id = pet_id
        self._goal_seconds = goal_seconds
        self._tz = tz

    def build(
        self,
        elapsed_seconds: int,
        path: PathInput,
        started_at_ms: int,
        ended_at_ms: int,
        path_points: Sequence[GeoSample] | None = None,
        steps: int | None = None,
        avg_speed_kmh: float | None = None,
        max_speed_kmh: float | None = None,
    ) -> WalkingRecord:
        """Build the record for one completed walk.

        The date is the local calendar date of the start, so a walk from
        23:50 to 00:05 belongs to the day it started. Distance prefers
        ``path_points`` over ``path`` when both are given.
        """
        coords, points = _normalize_path(path)
        if path_points is not None:
            points = tuple(path_points)

        if points is not None:
            distance = cumulative_distance(points)
        else:
            distance = _coordinate_distance(coords)

        start = _local_datetime(started_at_ms, self._tz)
        end = _local_datetime(ended_at_ms, self._tz)
        elapsed = int(elapsed_seconds)

        return WalkingRecord(
            id=uuid4().hex,
            pet_id=self._pet_id,
            date=start.date(),
            start_time=start,
            end_time=end,
            elapsed_seconds=elapsed,
            distance_m=distance,
            path=coords,
            path_points=points,
            step_count=steps,
            avg_speed_kmh=avg_speed_kmh,
            max_speed_kmh=max_speed_kmh,
            goal_achieved=elapsed >= self._goal_seconds,
        )


def stamp_delta(record: WalkingRecord) -> StampDelta:
    return StampDelta(count=1, goal_achieved=record.goal_achieved)


def format_elapsed(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
