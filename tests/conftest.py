"""Pytest configuration and fixtures."""

from typing import Dict, List, Optional, Tuple

import pytest

from shortlink.common.logging_config import setup_logging
from shortlink.database.memory import InMemoryLinkStore
from shortlink.errors import CacheError, MembershipFilterError
from shortlink.membership import InMemoryBloomFilter, MembershipFilter
from shortlink.service import LinkService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.tasks import BackgroundTaskPool


class DictCache:
    """In-process stand-in for RedisCache with switchable failures."""

    def __init__(self, ttl_seconds: int = 3600):
        self.ttl_seconds = ttl_seconds
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.set_calls: List[Tuple[str, str, int]] = []
        self.fail_reads = False
        self.fail_writes = False

    def cache_key(self, short_code: str) -> str:
        return f"shorturl:{short_code}"

    async def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise CacheError("cache unavailable")
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        if self.fail_writes:
            raise CacheError("cache unavailable")
        self.set_calls.append((key, value, ttl))
        self.data[key] = value
        self.ttls[key] = ttl

    async def set_default(self, key: str, value: str) -> None:
        await self.set(key, value, self.ttl_seconds)

    async def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self.data

    async def health_check(self) -> bool:
        return not self.fail_reads

    async def close(self) -> None:
        pass


class BrokenMembershipFilter(MembershipFilter):
    """Membership filter whose backend is always down."""

    def __init__(self):
        super().__init__(capacity=100, error_rate=0.01)

    async def initialize(self):
        raise MembershipFilterError("backend down")

    async def add(self, item):
        raise MembershipFilterError("backend down")

    async def add_many(self, items):
        raise MembershipFilterError("backend down")

    async def exists(self, item):
        raise MembershipFilterError("backend down")

    async def exists_many(self, items):
        raise MembershipFilterError("backend down")

    async def info(self):
        raise MembershipFilterError("backend down")


class CountingStore(InMemoryLinkStore):
    """In-memory store that counts existence checks."""

    def __init__(self):
        super().__init__()
        self.exists_calls = 0

    async def exists(self, short_code: str) -> bool:
        self.exists_calls += 1
        return await super().exists(short_code)


class ScriptedGenerator(ShortCodeGenerator):
    """Generator returning a fixed sequence of "random" codes."""

    def __init__(self, codes: List[str]):
        super().__init__(default_length=6)
        self.codes = list(codes)
        self.calls = 0

    def generate_random(self, length: Optional[int] = None) -> str:
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        return code


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=6)


@pytest.fixture
def store():
    """Create an empty counting in-memory store."""
    return CountingStore()


@pytest.fixture
def cache():
    """Create dict-backed cache."""
    return DictCache(ttl_seconds=3600)


@pytest.fixture
async def membership():
    """Create initialized in-memory bloom filter."""
    bloom = InMemoryBloomFilter(capacity=10_000, error_rate=0.01)
    await bloom.initialize()
    return bloom


@pytest.fixture
async def task_pool(logger):
    """Create background task pool, closed after the test."""
    pool = BackgroundTaskPool(workers=2, max_pending=100, logger=logger)
    yield pool
    await pool.close()


@pytest.fixture
def service(store, cache, membership, short_code_generator, task_pool, logger) -> LinkService:
    """Create service instance with all accelerators."""
    return LinkService(
        store=store,
        cache=cache,
        membership=membership,
        short_code_generator=short_code_generator,
        task_pool=task_pool,
        logger=logger,
        base_url="https://sho.rt",
    )


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


@pytest.fixture
def broken_membership():
    """Membership filter that always fails."""
    return BrokenMembershipFilter()


@pytest.fixture
def scripted_generator():
    """Factory for generators with a fixed code sequence."""
    return ScriptedGenerator


@pytest.fixture
def make_service():
    """Factory for services with selected collaborators."""

    def _make(**overrides) -> LinkService:
        options = {"store": CountingStore(), "base_url": "https://sho.rt"}
        options.update(overrides)
        return LinkService(**options)

    return _make
