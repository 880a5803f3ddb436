"""Calendar stamps, per-day summaries and streaks.

Pure functions over records and stamps; gateways call ``merge_stamp`` so the
upsert rule lives in one place.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from pawwalk.core.models import CalendarStamp, DailySummary, StampDelta, WalkingRecord, WalkingStats


def merge_stamp(
    existing: CalendarStamp | None,
    pet_id: str,
    day: date,
    delta: StampDelta,
) -> CalendarStamp:
    """Apply one walk's delta to the stamp for (pet, day).

    Goal achievement for a day never reverts once true.
    """
    if existing is None:
        return CalendarStamp(
            pet_id=pet_id,
            date=day,
            stamp_count=delta.count,
            goal_achieved=delta.goal_achieved,
        )
    return CalendarStamp(
        pet_id=pet_id,
        date=day,
        stamp_count=existing.stamp_count + delta.count,
        goal_achieved=existing.goal_achieved or delta.goal_achieved,
    )


def summarize_by_date(records: Iterable[WalkingRecord]) -> dict[date, DailySummary]:
    summaries: dict[date, DailySummary] = {}
    for record in records:
        prev = summaries.get(record.date)
        if prev is None:
            summaries[record.date] = DailySummary(
                date=record.date,
                walk_count=1,
                total_seconds=record.elapsed_seconds,
                total_distance_m=record.distance_m,
                first_start=record.start_time,
                last_end=record.end_time,
                goal_achieved=record.goal_achieved,
            )
            continue
        summaries[record.date] = DailySummary(
            date=record.date,
            walk_count=prev.walk_count + 1,
            total_seconds=prev.total_seconds + record.elapsed_seconds,
            total_distance_m=prev.total_distance_m + record.distance_m,
            first_start=min(prev.first_start, record.start_time),
            last_end=max(prev.last_end, record.end_time),
            goal_achieved=prev.goal_achieved or record.goal_achieved,
        )
    return summaries


def compute_walking_stats(stamps: Iterable[CalendarStamp], today: date) -> WalkingStats:
    """Totals and streaks over a pet's stamps.

    A streak is a run of consecutive stamped days. The current streak ends
    today, or yesterday if there is no walk yet today.
    """
    stamps = list(stamps)
    days = {s.date for s in stamps}
    total_walks = sum(s.stamp_count for s in stamps)
    goal_days = len({s.date for s in stamps if s.goal_achieved})

    longest = 0
    for day in days:
        if day - timedelta(days=1) in days:
            continue
        length = 1
        while day + timedelta(days=length) in days:
            length += 1
        longest = max(longest, length)

    cursor = today if today in days else today - timedelta(days=1)
    current = 0
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)

    return WalkingStats(
        total_walks=total_walks,
        total_goal_achievements=goal_days,
        longest_streak=longest,
        current_streak=current,
    )
