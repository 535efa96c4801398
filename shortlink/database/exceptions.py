"""Exceptions raised by link store implementations."""


class StoreError(Exception):
    """Generic failure of the durable store (connection, timeout, query error)."""


class DuplicateShortCodeError(StoreError):
    """Raised when inserting a short code that already exists."""
