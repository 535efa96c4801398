"""Storage layer for short links."""

from .base import LinkStoreBase
from .cache import RedisCache
from .exceptions import DuplicateShortCodeError, StoreError
from .memory import InMemoryLinkStore
from .models import Link, LinkStats, LinkSummary
from .postgres import PostgresLinkStore

__all__ = [
    "LinkStoreBase",
    "RedisCache",
    "DuplicateShortCodeError",
    "StoreError",
    "InMemoryLinkStore",
    "Link",
    "LinkStats",
    "LinkSummary",
    "PostgresLinkStore",
]
