"""Build a LinkService and its collaborators from configuration."""

import logging
from typing import Optional

from .config import Config
from .database.base import LinkStoreBase
from .database.cache import RedisCache
from .database.memory import InMemoryLinkStore
from .database.postgres import PostgresLinkStore
from .errors import LinkServiceError, MembershipFilterError
from .membership import InMemoryBloomFilter, MembershipFilter, RedisBloomFilter
from .service import LinkService
from .shortcode import ShortCodeGenerator
from .tasks import BackgroundTaskPool


def create_store(config: Config, logger: logging.Logger) -> LinkStoreBase:
    """Create the store named by ``config.database_url``."""
    if config.database_url.startswith("memory://"):
        logger.warning("Using in-memory link store; links are lost on restart")
        return InMemoryLinkStore(config.database_url, logger=logger)

    return PostgresLinkStore(
        db_config=config.database_url,
        pool_max_size=config.database_pool_max_size,
        connection_timeout_seconds=config.database_timeout_seconds,
        create_tables=config.database_create_tables,
        logger=logger,
    )


async def create_cache(config: Config, logger: logging.Logger) -> Optional[RedisCache]:
    """Create and connect the Redis cache, or None when no Redis is configured."""
    if not config.redis_url:
        logger.info("Redis caching disabled")
        return None

    logger.info(f"Connecting to Redis at {config.redis_url}")
    cache = RedisCache(
        redis_url=config.redis_url,
        ttl_seconds=config.cache_ttl_seconds,
        logger=logger,
    )
    await cache.connect()
    return cache


async def create_membership_filter(
    config: Config,
    cache: Optional[RedisCache],
    logger: logging.Logger,
) -> Optional[MembershipFilter]:
    """Create and initialize the configured membership filter backend."""
    if config.membership_backend == "none":
        logger.info("Membership filter disabled")
        return None

    if config.membership_backend == "redis":
        if cache is None or cache.client is None:
            logger.warning("Redis bloom filter requested without REDIS_URL; membership filter disabled")
            return None
        membership: MembershipFilter = RedisBloomFilter(
            client=cache.client,
            key=config.bloom_filter_key,
            capacity=config.bloom_filter_capacity,
            error_rate=config.bloom_filter_error_rate,
            logger=logger,
        )
    else:
        if config.workers > 1:
            # Each worker would hold its own partial set of codes
            logger.warning(
                f"In-memory membership filter is per-process; disabled for {config.workers} workers"
            )
            return None
        membership = InMemoryBloomFilter(
            capacity=config.bloom_filter_capacity,
            error_rate=config.bloom_filter_error_rate,
            logger=logger,
        )

    try:
        await membership.initialize()
    except MembershipFilterError as e:
        # Checks fall back to the store while the backend is unavailable
        logger.warning(f"Membership filter initialization failed: {e}")

    return membership


async def build_service(config: Config, logger: logging.Logger) -> LinkService:
    """Create the link service with store, cache, filter and task pool."""
    store = create_store(config, logger)
    cache = await create_cache(config, logger)
    membership = await create_membership_filter(config, cache, logger)

    service = LinkService(
        store=store,
        cache=cache,
        membership=membership,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        task_pool=BackgroundTaskPool(
            workers=config.access_count_workers,
            max_pending=config.access_count_queue_size,
            logger=logger,
        ),
        logger=logger,
        base_url=config.base_url,
        path_prefix=config.path_prefix,
        max_generation_attempts=config.max_generation_attempts,
        custom_code_min_length=config.custom_code_min_length,
        custom_code_max_length=config.custom_code_max_length,
    )

    if membership is not None and config.membership_warm_on_startup:
        try:
            await service.warm_membership_filter()
        except LinkServiceError as e:
            logger.warning(f"Could not warm membership filter: {e}")

    return service
