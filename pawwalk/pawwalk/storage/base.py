"""Storage interfaces (ports) for session recovery and walk persistence."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

    from pawwalk.core.models import CalendarStamp, StampDelta, TrackingSession, WalkingRecord


class RecoveryStore(Protocol):
    """Port: mirrors the live tracking session so it survives a restart."""

    async def save(self, session_key: str, session: TrackingSession) -> None: ...

    async def load(self, session_key: str) -> TrackingSession | None: ...

    async def clear(self, session_key: str) -> None: ...


class WalkGateway(Protocol):
    """Port: persists finished walks and their calendar stamps.

    Implementations raise ``PersistenceError`` on backend failures.
    """

    async def save_walk(self, record: WalkingRecord) -> str: ...

    async def get_walk(self, walk_id: str) -> WalkingRecord | None: ...

    async def upsert_stamp(self, pet_id: str, day: date, delta: StampDelta) -> CalendarStamp: ...

    async def list_walks_by_date(self, pet_id: str, day: date) -> list[WalkingRecord]: ...

    async def list_stamps_by_month(self, pet_id: str, year: int, month: int) -> list[CalendarStamp]: ...

    async def list_stamps(self, pet_id: str) -> list[CalendarStamp]: ...
