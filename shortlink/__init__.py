"""Core business logic for the short link service."""

from .errors import ErrorKind, LinkServiceError
from .membership import InMemoryBloomFilter, MembershipFilter, RedisBloomFilter
from .service import LinkService
from .shortcode import ShortCodeGenerator
from .tasks import BackgroundTaskPool

__all__ = [
    "ErrorKind",
    "LinkServiceError",
    "InMemoryBloomFilter",
    "MembershipFilter",
    "RedisBloomFilter",
    "LinkService",
    "ShortCodeGenerator",
    "BackgroundTaskPool",
]
