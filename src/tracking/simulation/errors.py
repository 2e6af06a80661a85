# errors.py
# Exception types raised by the tracking engine.


class TrackingError(Exception):
    """Base class for tracking engine errors."""


class InvalidRoute(TrackingError, ValueError):
    """Raised when a route has fewer than two waypoints."""


class SessionStateError(TrackingError, RuntimeError):
    """Raised when a TrackingSession lifecycle method is called out of order."""
