"""Sample filter — decides whether a raw fix joins the recorded path.

Without it, stationary GPS jitter adds thousands of near-zero segments and
corrupts both distance and speed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pawwalk.core.geo import distance_m

if TYPE_CHECKING:
    from pawwalk.core.models import GeoSample

DEFAULT_MIN_DISTANCE_M = 1.5
DEFAULT_MAX_ACCURACY_M = 100.0


class Rejection(str, Enum):
    ACCURACY = "accuracy"
    TOO_CLOSE = "too_close"


@dataclass(frozen=True)
class FilterConfig:
    min_distance_m: float = DEFAULT_MIN_DISTANCE_M
    # None disables the accuracy gate.
    max_accuracy_m: float | None = DEFAULT_MAX_ACCURACY_M


def check(
    candidate: GeoSample,
    last_accepted: GeoSample | None,
    config: FilterConfig,
) -> Rejection | None:
    """Return why ``candidate`` is rejected, or None if it is accepted.

    The accuracy gate runs first and applies to the first point of a session
    as well; an unknown accuracy (0) always passes it.
    """
    if config.max_accuracy_m is not None and candidate.accuracy_m > config.max_accuracy_m:
        return Rejection.ACCURACY
    if last_accepted is None:
        return None
    if distance_m(last_accepted, candidate) < config.min_distance_m:
        return Rejection.TOO_CLOSE
    return None


def accept(
    candidate: GeoSample,
    last_accepted: GeoSample | None,
    config: FilterConfig,
) -> bool:
    return check(candidate, last_accepted, config) is None
