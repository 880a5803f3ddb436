"""Tests for a full walk: start, track, finish, save."""

from __future__ import annotations

from datetime import timezone

import pytest

from pawwalk.core.errors import PersistenceError
from pawwalk.core.record import WalkingRecordBuilder
from pawwalk.core.session import WalkSession
from pawwalk.storage.memory import MemoryWalkGateway


class FlakyGateway(MemoryWalkGateway):
    """Fails the first ``failures`` writes of the given kind."""

    def __init__(self, fail_walks: int = 0, fail_stamps: int = 0) -> None:
        super().__init__()
        self.fail_walks = fail_walks
        self.fail_stamps = fail_stamps
        self.walk_writes = 0

    async def save_walk(self, record):
        if self.fail_walks:
            self.fail_walks -= 1
            raise PersistenceError("walk store offline")
        self.walk_writes += 1
        return await super().save_walk(record)

    async def upsert_stamp(self, pet_id, day, delta):
        if self.fail_stamps:
            self.fail_stamps -= 1
            raise PersistenceError("stamp store offline")
        return await super().upsert_stamp(pet_id, day, delta)


class Pedometer:
    def __init__(self, steps: int = 0) -> None:
        self.steps = steps


def _session(tracker, gateway, clock, step_counter=None, goal_seconds=1200):
    builder = WalkingRecordBuilder("kong", goal_seconds=goal_seconds, tz=timezone.utc)
    return WalkSession(tracker, gateway, builder, step_counter=step_counter, clock=clock)


@pytest.mark.asyncio
async def test_walk_end_to_end(tracker, source, recovery, gateway, sample, clock):
    session = _session(tracker, gateway, clock)

    source.set_fix(sample(0, 0))
    await session.begin()
    await source.push(sample(25, 30))
    await source.push(sample(50, 60))
    clock.now += 60

    record = await session.finish()

    assert record.distance_m == pytest.approx(50.0, abs=1e-6)
    assert record.elapsed_seconds == 60
    assert record.avg_speed_kmh == pytest.approx(3.0)
    assert record.max_speed_kmh == pytest.approx(3.0)
    assert len(record.path) == 3
    assert record.goal_achieved is False

    assert await gateway.get_walk(record.id) == record
    stamps = await gateway.list_stamps("kong")
    assert len(stamps) == 1
    assert stamps[0].stamp_count == 1
    assert session.stamp == stamps[0]

    assert not tracker.is_tracking
    assert tracker.path == ()
    assert await recovery.load("kong") is None
    assert session.pending_record is None


@pytest.mark.asyncio
async def test_goal_reached_after_twenty_minutes(tracker, source, gateway, sample, clock):
    session = _session(tracker, gateway, clock)
    source.set_fix(sample(0))
    await session.begin()
    clock.now += 1200

    record = await session.finish()
    assert record.goal_achieved is True
    assert (await gateway.list_stamps("kong"))[0].goal_achieved is True


@pytest.mark.asyncio
async def test_two_walks_same_day_share_a_stamp(tracker, source, gateway, sample, clock):
    session = _session(tracker, gateway, clock)

    source.set_fix(sample(0))
    await session.begin()
    clock.now += 300
    await session.finish()

    clock.now += 3600
    source.set_fix(sample(5, 3900))
    await session.begin()
    clock.now += 1300
    await session.finish()

    stamps = await gateway.list_stamps("kong")
    assert len(stamps) == 1
    assert stamps[0].stamp_count == 2
    assert stamps[0].goal_achieved is True


@pytest.mark.asyncio
async def test_no_speed_samples_leaves_speed_empty(tracker, source, gateway, sample, clock):
    session = _session(tracker, gateway, clock)
    source.set_fix(sample(0))
    await session.begin()
    clock.now += 10

    record = await session.finish()
    assert record.avg_speed_kmh is None
    assert record.max_speed_kmh is None
    assert record.distance_m == 0


@pytest.mark.asyncio
async def test_save_failure_keeps_record_and_recovery(tracker, source, recovery, sample, clock):
    gateway = FlakyGateway(fail_walks=1)
    session = _session(tracker, gateway, clock)
    source.set_fix(sample(0))
    await session.begin()
    await source.push(sample(20, 20))
    clock.now += 20

    with pytest.raises(PersistenceError):
        await session.finish()

    pending = session.pending_record
    assert pending is not None
    assert not tracker.is_tracking
    assert len(tracker.path) == 2
    saved = await recovery.load("kong")
    assert saved is not None
    assert len(saved.path) == 2

    record = await session.finish()
    assert record is pending
    assert gateway.walk_writes == 1
    assert await recovery.load("kong") is None


@pytest.mark.asyncio
async def test_begin_refused_while_walk_unsaved(tracker, source, recovery, sample, clock):
    gateway = FlakyGateway(fail_walks=1)
    session = _session(tracker, gateway, clock)
    source.set_fix(sample(0))
    await session.begin()
    await source.push(sample(20, 20))
    clock.now += 20

    with pytest.raises(PersistenceError):
        await session.finish()
    pending = session.pending_record

    with pytest.raises(PersistenceError):
        await session.begin()
    assert not tracker.is_tracking
    assert session.pending_record is pending
    assert len((await recovery.load("kong")).path) == 2

    assert await session.finish() is pending
    await session.begin()
    assert tracker.is_tracking
    assert tracker.path == (sample(0),)


@pytest.mark.asyncio
async def test_stamp_failure_retry_does_not_duplicate_walk(tracker, source, sample, clock):
    gateway = FlakyGateway(fail_stamps=1)
    session = _session(tracker, gateway, clock)
    source.set_fix(sample(0))
    await session.begin()
    clock.now += 30

    with pytest.raises(PersistenceError):
        await session.finish()
    assert gateway.walk_writes == 1

    record = await session.finish()
    assert gateway.walk_writes == 1
    assert len(await gateway.list_walks_by_date("kong", record.date)) == 1
    assert (await gateway.list_stamps("kong"))[0].stamp_count == 1


@pytest.mark.asyncio
async def test_steps_are_relative_to_start(tracker, source, gateway, sample, clock):
    pedometer = Pedometer(steps=4000)
    session = _session(tracker, gateway, clock, step_counter=pedometer)
    source.set_fix(sample(0))
    await session.begin()
    pedometer.steps = 4750
    assert session.steps == 750
    clock.now += 60

    record = await session.finish()
    assert record.step_count == 750


@pytest.mark.asyncio
async def test_steps_absent_without_counter(tracker, source, gateway, sample, clock):
    session = _session(tracker, gateway, clock)
    source.set_fix(sample(0))
    await session.begin()
    assert session.steps is None
    record = await session.finish()
    assert record.step_count is None


@pytest.mark.asyncio
async def test_elapsed_seconds(tracker, source, gateway, sample, clock):
    session = _session(tracker, gateway, clock)
    assert session.elapsed_seconds == 0
    source.set_fix(sample(0))
    await session.begin()
    clock.now += 95.7
    assert session.elapsed_seconds == 95


@pytest.mark.asyncio
async def test_discard_saves_nothing(tracker, source, recovery, gateway, sample, clock):
    session = _session(tracker, gateway, clock)
    source.set_fix(sample(0))
    await session.begin()
    await source.push(sample(20, 20))

    await session.discard()

    assert not tracker.is_tracking
    assert await recovery.load("kong") is None
    assert await gateway.list_stamps("kong") == []
