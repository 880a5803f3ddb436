"""File-based storage implementations.

Walk records are appended as JSON Lines, partitioned by pet and the walk's
local date::

    base_dir/walks/<pet>/YYYY/MM/DD/walks.jsonl

Calendar stamps live in one JSON object per pet and month, keyed by date::

    base_dir/stamps/<pet>/YYYY-MM.json

Recovery snapshots are one JSON file per session key, replaced atomically
so an abrupt termination leaves either the old or the new snapshot.
"""

from __future__ import annotations

import json
import os
import re
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from pawwalk.core.calendar import merge_stamp
from pawwalk.core.errors import PersistenceError
from pawwalk.core.models import CalendarStamp, TrackingSession, WalkingRecord

if TYPE_CHECKING:
    from pawwalk.core.models import StampDelta

log = structlog.get_logger()

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def _safe_name(key: str) -> str:
    """Map an arbitrary key to a single path component."""
    return _UNSAFE.sub("_", key) or "_"


def _write_atomic(path: Path, text: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


class FileRecoveryStore:
    """RecoveryStore backed by one JSON file per session key."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_key: str) -> Path:
        return self._base_dir / f"{_safe_name(session_key)}.json"

    async def save(self, session_key: str, session: TrackingSession) -> None:
        payload = json.dumps(session.to_dict(), separators=(",", ":"))
        _write_atomic(self._path(session_key), payload)

    async def load(self, session_key: str) -> TrackingSession | None:
        path = self._path(session_key)
        if not path.exists():
            return None
        try:
            return TrackingSession.from_dict(json.loads(path.read_text()))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            log.warning("recovery_file_corrupt", path=str(path), exc_info=True)
            return None

    async def clear(self, session_key: str) -> None:
        self._path(session_key).unlink(missing_ok=True)


class FileWalkGateway:
    """WalkGateway backed by date-partitioned files on disk."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._walks_dir = self._base_dir / "walks"
        self._stamps_dir = self._base_dir / "stamps"
        self._walks_dir.mkdir(parents=True, exist_ok=True)
        self._stamps_dir.mkdir(parents=True, exist_ok=True)

    def _day_dir(self, pet_id: str, day: date) -> Path:
        return (self._walks_dir / _safe_name(pet_id)
                / f"{day.year:04d}" / f"{day.month:02d}" / f"{day.day:02d}")

    def _stamp_file(self, pet_id: str, year: int, month: int) -> Path:
        return self._stamps_dir / _safe_name(pet_id) / f"{year:04d}-{month:02d}.json"

    def _read_walks(self, path: Path) -> list[WalkingRecord]:
        records = []
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line:
                    records.append(WalkingRecord.from_dict(json.loads(line)))
        return records

    def _read_stamp_file(self, path: Path) -> dict[str, dict]:
        if not path.exists():
            return {}
        return json.loads(path.read_text())

    async def save_walk(self, record: WalkingRecord) -> str:
        day_dir = self._day_dir(record.pet_id, record.date)
        try:
            day_dir.mkdir(parents=True, exist_ok=True)
            with open(day_dir / "walks.jsonl", "a") as f:
                f.write(json.dumps(record.to_dict(), separators=(",", ":")) + "\n")
        except OSError as exc:
            raise PersistenceError(f"could not write walk {record.id}: {exc}") from exc

        log.debug("walk_written", walk_id=record.id, path=str(day_dir))
        return record.id

    async def get_walk(self, walk_id: str) -> WalkingRecord | None:
        try:
            for path in self._walks_dir.rglob("walks.jsonl"):
                for record in self._read_walks(path):
                    if record.id == walk_id:
                        return record
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"could not read walks: {exc}") from exc
        return None

    async def upsert_stamp(self, pet_id: str, day: date, delta: StampDelta) -> CalendarStamp:
        path = self._stamp_file(pet_id, day.year, day.month)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            stamps = self._read_stamp_file(path)
            existing = stamps.get(day.isoformat())
            stamp = merge_stamp(
                CalendarStamp.from_dict(existing) if existing else None,
                pet_id, day, delta,
            )
            stamps[day.isoformat()] = stamp.to_dict()
            _write_atomic(path, json.dumps(stamps, sort_keys=True))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"could not upsert stamp {pet_id}/{day}: {exc}") from exc

        log.debug("stamp_upserted", pet=pet_id, date=day.isoformat(),
                  count=stamp.stamp_count, goal=stamp.goal_achieved)
        return stamp

    async def list_walks_by_date(self, pet_id: str, day: date) -> list[WalkingRecord]:
        path = self._day_dir(pet_id, day) / "walks.jsonl"
        if not path.exists():
            return []
        try:
            records = self._read_walks(path)
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"could not read {path}: {exc}") from exc
        return sorted(records, key=lambda r: r.start_time, reverse=True)

    async def list_stamps_by_month(self, pet_id: str, year: int, month: int) -> list[CalendarStamp]:
        try:
            stamps = self._read_stamp_file(self._stamp_file(pet_id, year, month))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"could not read stamps: {exc}") from exc
        return sorted((CalendarStamp.from_dict(s) for s in stamps.values()), key=lambda s: s.date)

    async def list_stamps(self, pet_id: str) -> list[CalendarStamp]:
        pet_dir = self._stamps_dir / _safe_name(pet_id)
        if not pet_dir.exists():
            return []
        result: list[CalendarStamp] = []
        try:
            for path in sorted(pet_dir.glob("*.json")):
                result.extend(CalendarStamp.from_dict(s) for s in self._read_stamp_file(path).values())
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"could not read stamps: {exc}") from exc
        return sorted(result, key=lambda s: s.date)
