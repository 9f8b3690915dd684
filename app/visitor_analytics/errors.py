"""
Errors raised by the visitor analytics subsystem.
"""


class VisitorAnalyticsError(Exception):
    """Base class for visitor analytics failures."""


class StoreUnavailableError(VisitorAnalyticsError):
    """The visit event store could not be read or written."""


class InvalidOrderError(VisitorAnalyticsError):
    """Daily stats were not strictly ascending by date before projection."""
