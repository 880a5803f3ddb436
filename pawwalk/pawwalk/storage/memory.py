"""In-process implementations of RecoveryStore and WalkGateway. Zero dependencies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pawwalk.core.calendar import merge_stamp

if TYPE_CHECKING:
    from datetime import date

    from pawwalk.core.models import CalendarStamp, StampDelta, TrackingSession, WalkingRecord


class MemoryRecoveryStore:
    def __init__(self) -> None:
        self._sessions: dict[str, TrackingSession] = {}

    async def save(self, session_key: str, session: TrackingSession) -> None:
        self._sessions[session_key] = session

    async def load(self, session_key: str) -> TrackingSession | None:
        return self._sessions.get(session_key)

    async def clear(self, session_key: str) -> None:
        self._sessions.pop(session_key, None)


class MemoryWalkGateway:
    def __init__(self) -> None:
        self._walks: dict[str, WalkingRecord] = {}
        self._stamps: dict[tuple[str, date], CalendarStamp] = {}

    async def save_walk(self, record: WalkingRecord) -> str:
        self._walks[record.id] = record
        return record.id

    async def get_walk(self, walk_id: str) -> WalkingRecord | None:
        return self._walks.get(walk_id)

    async def upsert_stamp(self, pet_id: str, day: date, delta: StampDelta) -> CalendarStamp:
        stamp = merge_stamp(self._stamps.get((pet_id, day)), pet_id, day, delta)
        self._stamps[(pet_id, day)] = stamp
        return stamp

    async def list_walks_by_date(self, pet_id: str, day: date) -> list[WalkingRecord]:
        walks = [w for w in self._walks.values() if w.pet_id == pet_id and w.date == day]
        return sorted(walks, key=lambda w: w.start_time, reverse=True)

    async def list_stamps_by_month(self, pet_id: str, year: int, month: int) -> list[CalendarStamp]:
        stamps = [
            s for (pid, day), s in self._stamps.items()
            if pid == pet_id and day.year == year and day.month == month
        ]
        return sorted(stamps, key=lambda s: s.date)

    async def list_stamps(self, pet_id: str) -> list[CalendarStamp]:
        stamps = [s for (pid, _), s in self._stamps.items() if pid == pet_id]
        return sorted(stamps, key=lambda s: s.date)
