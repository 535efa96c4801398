"""Tests for building the service from configuration."""

import pytest

from shortlink.config import Config
from shortlink.database.memory import InMemoryLinkStore
from shortlink.errors import ErrorKind, LinkServiceError
from shortlink.factory import build_service, create_membership_filter, create_store
from shortlink.membership import InMemoryBloomFilter


@pytest.mark.asyncio
class TestFactory:
    """Test collaborator selection."""

    async def test_memory_store(self, logger):
        store = create_store(Config(database_url="memory://"), logger)
        assert isinstance(store, InMemoryLinkStore)

    async def test_memory_filter_single_process(self, logger):
        config = Config(database_url="memory://", membership_backend="memory", workers=1)

        membership = await create_membership_filter(config, None, logger)

        assert isinstance(membership, InMemoryBloomFilter)
        assert await membership.exists("anything") is False

    async def test_memory_filter_disabled_for_multiple_workers(self, logger):
        """Per-process filters would miss codes created by sibling workers."""
        config = Config(database_url="memory://", membership_backend="memory", workers=4)

        assert await create_membership_filter(config, None, logger) is None

    async def test_redis_filter_without_redis(self, logger):
        config = Config(database_url="memory://", membership_backend="redis")
        assert await create_membership_filter(config, None, logger) is None

    async def test_build_service_multiple_workers_checks_store(self, logger):
        config = Config(database_url="memory://", membership_backend="memory", workers=2)
        service = await build_service(config, logger)

        await service.create("https://example.com", custom_code="shared")
        with pytest.raises(LinkServiceError) as exc_info:
            await service.create("https://example.com/2", custom_code="shared")

        assert service.membership is None
        assert exc_info.value.kind is ErrorKind.CONFLICT
        await service.close()
