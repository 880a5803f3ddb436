"""Builds concrete components from an AppConfig.

Shared by the API service and the simulator so both pick backends and
tracking thresholds the same way.
"""

from __future__ import annotations

import time
from typing import Callable, TYPE_CHECKING

from pawwalk.core.record import WalkingRecordBuilder
from pawwalk.core.session import WalkSession
from pawwalk.core.speed import SpeedEstimator
from pawwalk.core.tracker import PathTracker
from pawwalk.storage.file_storage import FileRecoveryStore, FileWalkGateway
from pawwalk.storage.memory import MemoryRecoveryStore, MemoryWalkGateway

if TYPE_CHECKING:
    from pawwalk.config import AppConfig
    from pawwalk.core.session import StepCounter
    from pawwalk.geolocation.base import GeolocationSource
    from pawwalk.storage.base import RecoveryStore, WalkGateway


def make_gateway(config: AppConfig) -> WalkGateway:
    if config.storage.backend == "memory":
        return MemoryWalkGateway()
    if config.storage.backend == "file":
        return FileWalkGateway(base_dir=config.storage.base_dir)
    raise ValueError(f"unknown storage backend: {config.storage.backend!r}")


def make_recovery_store(config: AppConfig) -> RecoveryStore:
    if config.recovery.backend == "memory":
        return MemoryRecoveryStore()
    if config.recovery.backend == "file":
        return FileRecoveryStore(base_dir=config.recovery.base_dir)
    raise ValueError(f"unknown recovery backend: {config.recovery.backend!r}")


def make_tracker(
    config: AppConfig,
    source: GeolocationSource,
    recovery: RecoveryStore,
    session_key: str,
    clock: Callable[[], float] = time.time,
) -> PathTracker:
    tracking = config.tracking
    return PathTracker(
        source,
        recovery,
        session_key,
        filter_config=tracking.filter_config(),
        speed=SpeedEstimator(window=tracking.speed_window, max_gap_s=tracking.max_speed_gap_s),
        fix_timeout_s=tracking.fix_timeout_s,
        high_accuracy=tracking.high_accuracy,
        persist_every=tracking.persist_every,
        clock=clock,
    )


def make_session(
    config: AppConfig,
    pet_id: str,
    source: GeolocationSource,
    recovery: RecoveryStore,
    gateway: WalkGateway,
    step_counter: StepCounter | None = None,
    clock: Callable[[], float] = time.time,
) -> WalkSession:
    """One walk for ``pet_id``; the pet id doubles as the recovery key."""
    tracker = make_tracker(config, source, recovery, session_key=pet_id, clock=clock)
    builder = WalkingRecordBuilder(pet_id, goal_seconds=config.goal.goal_seconds)
    return WalkSession(tracker, gateway, builder, step_counter=step_counter, clock=clock)
