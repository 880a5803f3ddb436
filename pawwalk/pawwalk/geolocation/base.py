"""Geolocation source interface (port)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Protocol, TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from pawwalk.core.errors import LocationError
    from pawwalk.core.models import GeoSample

SampleCallback = Callable[["GeoSample"], Awaitable[None]]
ErrorCallback = Callable[["LocationError"], Awaitable[None]]


@dataclass
class Subscription:
    """Handle returned by ``subscribe``; pass it back to ``unsubscribe``."""

    on_sample: SampleCallback
    on_error: ErrorCallback
    id: str = field(default_factory=lambda: uuid4().hex)
    active: bool = True


class GeolocationSource(Protocol):
    """Port: produces position fixes on demand and continuously.

    Sources deliver continuous updates by awaiting the subscriber's
    coroutine, one at a time, in arrival order.
    """

    async def get_current_fix(self, timeout_s: float, high_accuracy: bool = True) -> GeoSample:
        """Resolve one fix or raise a ``LocationError``."""
        ...

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> None: ...
