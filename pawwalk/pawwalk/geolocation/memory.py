"""In-process, push-driven GeolocationSource.

Fixes are handed in by the host (a platform bridge, the simulator, tests)
via ``set_fix`` / ``push``. Zero dependencies.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from pawwalk.core.errors import LocationTimeout
from pawwalk.geolocation.base import Subscription

if TYPE_CHECKING:
    from pawwalk.core.errors import LocationError
    from pawwalk.core.models import GeoSample
    from pawwalk.geolocation.base import ErrorCallback, SampleCallback


class InMemoryGeolocationSource:
    def __init__(self, fix: GeoSample | None = None) -> None:
        self._fix = fix
        self._fix_error: LocationError | None = None
        self._fix_ready = asyncio.Event()
        if fix is not None:
            self._fix_ready.set()
        self._subscriptions: list[Subscription] = []
        self.fix_requests = 0

    @property
    def subscriptions(self) -> list[Subscription]:
        return [s for s in self._subscriptions if s.active]

    def set_fix(self, fix: GeoSample) -> None:
        """Answer pending and future ``get_current_fix`` calls with ``fix``."""
        self._fix = fix
        self._fix_error = None
        self._fix_ready.set()

    def fail_fix(self, error: LocationError) -> None:
        """Make pending and future ``get_current_fix`` calls raise ``error``."""
        self._fix_error = error
        self._fix_ready.set()

    async def get_current_fix(self, timeout_s: float, high_accuracy: bool = True) -> GeoSample:
        self.fix_requests += 1
        try:
            await asyncio.wait_for(self._fix_ready.wait(), timeout_s)
        except asyncio.TimeoutError:
            raise LocationTimeout(f"no fix within {timeout_s}s") from None
        if self._fix_error is not None:
            raise self._fix_error
        assert self._fix is not None
        return self._fix

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback) -> Subscription:
        subscription = Subscription(on_sample=on_sample, on_error=on_error)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def push(self, sample: GeoSample) -> None:
        """Deliver a continuous update to every active subscriber, in order."""
        self._fix = sample
        for subscription in self.subscriptions:
            await subscription.on_sample(sample)

    async def push_error(self, error: LocationError) -> None:
        for subscription in self.subscriptions:
            await subscription.on_error(error)
