"""Error taxonomy.

Location failures come from the geolocation source and belong to the
tracking session. Persistence failures come from the walk gateway and are
kept separate: a walk can be fully tracked and still fail to save.
"""

from __future__ import annotations


class LocationError(Exception):
    """Base for geolocation failures surfaced by the path tracker."""

    retryable = False


class PermissionDenied(LocationError):
    """The user declined location access."""


class LocationTimeout(LocationError):
    """No fix within the allotted time. Calling ``start()`` again may work."""

    retryable = True


class LocationUnavailable(LocationError):
    """The platform cannot provide a location at all."""


class PersistenceError(Exception):
    """Saving or loading walk records / stamps failed."""
