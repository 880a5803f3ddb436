"""PawWalk — core internal data models.

These are plain dataclasses with no framework dependencies.
JSON payloads (recovery files, walk storage, HTTP bodies) are converted
to/from these at the boundary via ``to_dict`` / ``from_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class GeoSample:
    """A single resolved geolocation reading.

    ``accuracy_m == 0`` means the platform did not report an accuracy.
    """

    latitude: float
    longitude: float
    accuracy_m: float = 0.0
    timestamp_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy_m": self.accuracy_m,
            "timestamp_ms": self.timestamp_ms,
        }

    @classmethod
    def from_dict(cls, d: dict) -> GeoSample:
        return cls(
            latitude=float(d["latitude"]),
            longitude=float(d["longitude"]),
            accuracy_m=float(d.get("accuracy_m", 0.0) or 0.0),
            timestamp_ms=int(d.get("timestamp_ms", 0)),
        )


# A sample that passed the filter and was appended to the live path.
PathPoint = GeoSample


@dataclass(frozen=True)
class SpeedSample:
    instantaneous_kmh: float
    rolling_average_kmh: float


@dataclass(frozen=True)
class TrackingSession:
    """Snapshot of the path tracker's state.

    This is also the unit written to the recovery store.
    """

    is_tracking: bool = False
    path: tuple[GeoSample, ...] = ()
    current_location: GeoSample | None = None
    cumulative_distance_m: float = 0.0
    started_at_ms: int | None = None

    def to_dict(self) -> dict:
        return {
            "is_tracking": self.is_tracking,
            "path": [p.to_dict() for p in self.path],
            "current_location": (
                self.current_location.to_dict() if self.current_location else None
            ),
            "cumulative_distance_m": self.cumulative_distance_m,
            "started_at_ms": self.started_at_ms,
        }

    @classmethod
    def from_dict(cls, d: dict) -> TrackingSession:
        current = d.get("current_location")
        return cls(
            is_tracking=bool(d.get("is_tracking", False)),
            path=tuple(GeoSample.from_dict(p) for p in d.get("path", [])),
            current_location=GeoSample.from_dict(current) if current else None,
            cumulative_distance_m=float(d.get("cumulative_distance_m", 0.0)),
            started_at_ms=d.get("started_at_ms"),
        )


@dataclass(frozen=True)
class WalkingRecord:
    id: str
    pet_id: str
    date: date
    start_time: datetime
    end_time: datetime
    elapsed_seconds: int
    distance_m: float
    path: tuple[tuple[float, float], ...]  # (lon, lat) pairs for map rendering
    goal_achieved: bool
    path_points: tuple[GeoSample, ...] | None = None
    step_count: int | None = None
    avg_speed_kmh: float | None = None
    max_speed_kmh: float | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pet_id": self.pet_id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "elapsed_seconds": self.elapsed_seconds,
            "distance_m": self.distance_m,
            "path": [[lon, lat] for lon, lat in self.path],
            "path_points": (
                [p.to_dict() for p in self.path_points]
                if self.path_points is not None else None
            ),
            "step_count": self.step_count,
            "avg_speed_kmh": self.avg_speed_kmh,
            "max_speed_kmh": self.max_speed_kmh,
            "goal_achieved": self.goal_achieved,
        }

    @classmethod
    def from_dict(cls, d: dict) -> WalkingRecord:
        points = d.get("path_points")
        return cls(
            id=str(d["id"]),
            pet_id=str(d["pet_id"]),
            date=date.fromisoformat(d["date"]),
            start_time=datetime.fromisoformat(d["start_time"]),
            end_time=datetime.fromisoformat(d["end_time"]),
            elapsed_seconds=int(d["elapsed_seconds"]),
            distance_m=float(d.get("distance_m", 0.0)),
            path=tuple((float(lon), float(lat)) for lon, lat in d.get("path", [])),
            path_points=(
                tuple(GeoSample.from_dict(p) for p in points)
                if points is not None else None
            ),
            step_count=d.get("step_count"),
            avg_speed_kmh=d.get("avg_speed_kmh"),
            max_speed_kmh=d.get("max_speed_kmh"),
            goal_achieved=bool(d.get("goal_achieved", False)),
        )


@dataclass(frozen=True)
class StampDelta:
    """What a single walk contributes to the calendar stamp of its day."""

    count: int = 1
    goal_achieved: bool = False


@dataclass(frozen=True)
class CalendarStamp:
    pet_id: str
    date: date
    stamp_count: int = 1
    goal_achieved: bool = False

    def to_dict(self) -> dict:
        return {
            "pet_id": self.pet_id,
            "date": self.date.isoformat(),
            "stamp_count": self.stamp_count,
            "goal_achieved": self.goal_achieved,
        }

    @classmethod
    def from_dict(cls, d: dict) -> CalendarStamp:
        return cls(
            pet_id=str(d["pet_id"]),
            date=date.fromisoformat(d["date"]),
            stamp_count=int(d.get("stamp_count", 1)),
            goal_achieved=bool(d.get("goal_achieved", False)),
        )


@dataclass(frozen=True)
class DailySummary:
    date: date
    walk_count: int
    total_seconds: int
    total_distance_m: float
    first_start: datetime
    last_end: datetime
    goal_achieved: bool

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "walk_count": self.walk_count,
            "total_seconds": self.total_seconds,
            "total_distance_m": self.total_distance_m,
            "first_start": self.first_start.isoformat(),
            "last_end": self.last_end.isoformat(),
            "goal_achieved": self.goal_achieved,
        }


@dataclass(frozen=True)
class WalkingStats:
    total_walks: int = 0
    total_goal_achievements: int = 0
    longest_streak: int = 0
    current_streak: int = 0

    def to_dict(self) -> dict:
        return {
            "total_walks": self.total_walks,
            "total_goal_achievements": self.total_goal_achievements,
            "longest_streak": self.longest_streak,
            "current_streak": self.current_streak,
        }
