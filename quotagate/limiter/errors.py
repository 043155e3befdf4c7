"""Exceptions raised by the admission controller and its stores."""


class RateLimitError(Exception):
    """Base class for admission controller errors."""


class CallerError(RateLimitError, ValueError):
    """Invalid arguments passed to the controller (bad key, limit or window)."""


class StorageUnavailable(RateLimitError):
    """The window store could not complete an atomic read-modify-write."""
