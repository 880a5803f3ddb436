#!/usr/bin/env python3
"""PawWalk walk simulator.

Generates a realistic noisy dog walk (steady walking, sniffing stops with
GPS jitter, the odd inaccurate fix), runs it through the path tracker and a
walk session, and saves the resulting record.

Usage:
    # 25-minute walk around Seoul, saved in memory, summary printed
    python -m tools.simulator.simulate_walk --duration 1500

    # Save the walk to a running walk API
    python -m tools.simulator.simulate_walk --server http://localhost:8000 --pet kong

    # Write the generated trace for later playback with TraceGeolocationSource
    python -m tools.simulator.simulate_walk --out walk_trace.json
"""

from __future__ import annotations

import argparse
import asyncio
import math
import random
import time
from dataclasses import dataclass
from datetime import datetime

from pawwalk.config import load_config
from pawwalk.core.geo import format_distance
from pawwalk.core.models import GeoSample
from pawwalk.core.record import format_elapsed
from pawwalk.geolocation.memory import InMemoryGeolocationSource
from pawwalk.geolocation.trace import save_trace
from pawwalk.main import setup_logging
from pawwalk.storage.http_gateway import HttpWalkGateway
from pawwalk.storage.memory import MemoryRecoveryStore, MemoryWalkGateway
from pawwalk.wiring import make_session


@dataclass
class SimWalker:
    lat: float
    lon: float
    bearing: float
    speed_mps: float
    sniffing_for: float = 0.0


class SimClock:
    """Clock driven by the trace timestamps instead of wall time."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def move_walker(walker: SimWalker, dt_seconds: float) -> None:
    """Move along the current bearing; occasionally stop to sniff."""
    if walker.sniffing_for > 0:
        walker.sniffing_for -= dt_seconds
        return
    if random.random() < 0.03:
        walker.sniffing_for = random.uniform(10, 60)
        return

    walker.bearing = (walker.bearing + random.uniform(-20, 20)) % 360
    # Dog walking pace: 0.8-1.8 m/s
    walker.speed_mps = max(0.8, min(1.8, walker.speed_mps + random.uniform(-0.1, 0.1)))

    distance_m = walker.speed_mps * dt_seconds
    bearing_rad = math.radians(walker.bearing)

    # Approximate: 1 degree latitude ≈ 111,000 m
    walker.lat += (distance_m * math.cos(bearing_rad)) / 111_000
    walker.lon += (distance_m * math.sin(bearing_rad)) / (111_000 * math.cos(math.radians(walker.lat)))


def make_sample(walker: SimWalker, timestamp_ms: int) -> GeoSample:
    """A fix around the true position, with occasional very poor accuracy."""
    accuracy = random.uniform(3, 15) if random.random() > 0.05 else random.uniform(120, 300)
    noise_m = random.gauss(0, accuracy / 4)
    angle = random.uniform(0, 2 * math.pi)
    return GeoSample(
        latitude=walker.lat + noise_m * math.cos(angle) / 111_000,
        longitude=walker.lon + noise_m * math.sin(angle) / (111_000 * math.cos(math.radians(walker.lat))),
        accuracy_m=round(accuracy, 1),
        timestamp_ms=timestamp_ms,
    )


def generate_trace(center: tuple[float, float], duration_s: int, interval_s: float,
                   start_ms: int) -> list[GeoSample]:
    walker = SimWalker(lat=center[0], lon=center[1],
                       bearing=random.uniform(0, 360), speed_mps=1.2)
    samples = []
    elapsed = 0.0
    while elapsed <= duration_s:
        samples.append(make_sample(walker, start_ms + int(elapsed * 1000)))
        move_walker(walker, interval_s)
        elapsed += interval_s
    return samples


async def run_simulation(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    setup_logging(config)

    start_ms = int(time.time() * 1000)
    samples = generate_trace(args.center, args.duration, args.interval, start_ms)
    if args.out:
        save_trace(args.out, samples, datetime.now().isoformat())
        print(f"Trace written to {args.out} ({len(samples)} samples)")

    gateway = HttpWalkGateway.connect(args.server) if args.server else MemoryWalkGateway()
    clock = SimClock(start_ms / 1000)
    source = InMemoryGeolocationSource(fix=samples[0])
    session = make_session(config, args.pet, source, MemoryRecoveryStore(), gateway, clock=clock)

    print(f"Simulating walk for '{args.pet}': {len(samples)} samples over {args.duration}s")
    print(f"  Center: {args.center[0]:.4f}, {args.center[1]:.4f}")
    print(f"  Saving to: {args.server or 'memory'}")
    print()

    await session.begin()
    for sample in samples[1:]:
        clock.now = sample.timestamp_ms / 1000
        await source.push(sample)

    tracker_stats = session.tracker.stats.snapshot()
    try:
        record = await session.finish()
    finally:
        if isinstance(gateway, HttpWalkGateway):
            await gateway.aclose()

    print("Walk complete")
    print(f"  Elapsed: {format_elapsed(record.elapsed_seconds)}")
    print(f"  Distance: {format_distance(record.distance_m)}")
    print(f"  Path points: {len(record.path)} of {tracker_stats['samples_received']} samples")
    print(f"  Rejected: {tracker_stats['samples_rejected']}")
    if record.avg_speed_kmh is not None:
        print(f"  Avg speed: {record.avg_speed_kmh:.1f} km/h (max {record.max_speed_kmh:.1f})")
    print(f"  Goal achieved: {record.goal_achieved}")
    if session.stamp is not None:
        print(f"  Stamp {session.stamp.date}: {session.stamp.stamp_count} walk(s)")


def main():
    parser = argparse.ArgumentParser(description="PawWalk walk simulator")
    parser.add_argument("--server", default=None, help="Walk API URL (default: in-memory)")
    parser.add_argument("--pet", default="kong", help="Pet identifier")
    parser.add_argument("--duration", type=int, default=1500, help="Walk duration in seconds")
    parser.add_argument("--interval", type=float, default=3.0, help="Seconds between GPS fixes")
    parser.add_argument("--center", type=str, default="37.5665,126.9780",
                        help="Start lat,lon (default: Seoul)")
    parser.add_argument("--config", default=None, help="config.yaml path")
    parser.add_argument("--out", default=None, help="Write the generated trace to this JSON file")

    args = parser.parse_args()

    # Parse center
    lat, lon = args.center.split(",")
    args.center = (float(lat), float(lon))

    asyncio.run(run_simulation(args))


if __name__ == "__main__":
    main()
