"""Business logic service for short links."""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .common.url_builder import build_short_url
from .common.validators import is_reserved_code, is_valid_short_code, is_valid_url, normalize_url
from .database.base import LinkStoreBase
from .database.cache import RedisCache
from .database.exceptions import DuplicateShortCodeError, StoreError
from .database.models import Link, LinkStats, LinkSummary, as_utc, utcnow
from .errors import CacheError, LinkServiceError, MembershipFilterError
from .membership import MembershipFilter
from .shortcode import ShortCodeGenerator
from .tasks import BackgroundTaskPool


class LinkService:
    """Service layer for creating and resolving short links.

    The store is authoritative. The cache and membership filter are
    optional accelerators: their failures are logged and never change the
    outcome of a request.
    """

    def __init__(
        self,
        store: LinkStoreBase,
        cache: Optional[RedisCache] = None,
        membership: Optional[MembershipFilter] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        task_pool: Optional[BackgroundTaskPool] = None,
        logger: Optional[logging.Logger] = None,
        base_url: str = "http://localhost:8080",
        path_prefix: str = "",
        max_generation_attempts: int = 10,
        custom_code_min_length: int = 3,
        custom_code_max_length: int = 20,
    ):
        """Initialize link service.

        Args:
            store: Authoritative link store
            cache: Optional cache for code -> URL lookups
            membership: Optional probabilistic filter of taken codes
            short_code_generator: Optional short code generator
            task_pool: Pool for background access-count increments
            logger: Optional logger
            base_url: Public base URL of short links
            path_prefix: Optional path prefix of short links
            max_generation_attempts: Random codes tried before giving up
            custom_code_min_length: Minimum custom code length
            custom_code_max_length: Maximum custom code length
        """
        self.store = store
        self.cache = cache
        self.membership = membership
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.task_pool = task_pool or BackgroundTaskPool(logger=self.logger)
        self.base_url = base_url
        self.path_prefix = path_prefix
        self.max_generation_attempts = max_generation_attempts
        self.custom_code_min_length = custom_code_min_length
        self.custom_code_max_length = custom_code_max_length

    @contextmanager
    def _store_errors(self, action: str):
        """Translate store failures into UNAVAILABLE service errors."""
        try:
            yield
        except DuplicateShortCodeError:
            raise
        except StoreError as e:
            self.logger.error(f"Store failure while trying to {action}: {e}")
            raise LinkServiceError.unavailable(f"Failed to {action}") from e

    async def create(
        self,
        url: str,
        custom_code: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> LinkSummary:
        """Create a new short link.

        Args:
            url: The target URL; http:// is assumed when no scheme is given
            custom_code: Optional custom short code
            expires_at: Optional expiry timestamp (naive values are UTC)

        Returns:
            Summary of the created link

        Raises:
            LinkServiceError: INVALID_INPUT, CONFLICT, INTERNAL or UNAVAILABLE
        """
        is_valid, error = is_valid_url(url)
        if not is_valid:
            raise LinkServiceError.invalid_input(f"Invalid URL: {error}")

        original_url = normalize_url(url)
        expires_at = as_utc(expires_at)

        with self._store_errors("check short code availability"):
            if custom_code:
                is_valid, error = is_valid_short_code(
                    custom_code,
                    self.generator.BASE62_CHARS,
                    min_length=self.custom_code_min_length,
                    max_length=self.custom_code_max_length,
                )
                if not is_valid:
                    raise LinkServiceError.invalid_input(f"Invalid short code: {error}")

                if await self._code_taken(custom_code):
                    raise LinkServiceError.conflict(f"Short code '{custom_code}' already exists")

                short_code = custom_code
            else:
                short_code = await self._generate_unique_short_code()

        try:
            with self._store_errors("save short link"):
                link = await self.store.insert(short_code, original_url, expires_at)
        except DuplicateShortCodeError as e:
            raise LinkServiceError.conflict(f"Short code '{short_code}' already exists") from e

        await self._register_code(short_code)
        await self._warm_cache(link)

        self.logger.info(f"Created short link: {short_code} -> {original_url}")

        return LinkSummary(
            short_url=build_short_url(short_code, self.base_url, self.path_prefix),
            short_code=short_code,
            original_url=link.original_url,
            expires_at=link.expires_at,
            created_at=link.created_at,
        )

    async def resolve(self, short_code: str) -> str:
        """Resolve a short code to its target URL and count the access.

        Raises:
            LinkServiceError: NOT_FOUND, EXPIRED or UNAVAILABLE
        """
        if not self._is_possible_code(short_code):
            raise LinkServiceError.not_found(f"Short code '{short_code}' not found")

        if self.cache:
            try:
                cached_url = await self.cache.get(self.cache.cache_key(short_code))
            except CacheError as e:
                self.logger.warning(f"Cache lookup failed for {short_code}: {e}")
                cached_url = None

            if cached_url:
                self.logger.debug(f"Cache hit for {short_code}")
                self.task_pool.submit(
                    self._increment_access_count,
                    short_code,
                    description=f"increment access count of {short_code}",
                )
                return cached_url

        with self._store_errors("look up short link"):
            link = await self.store.get_by_code(short_code)

        if link is None:
            self.logger.debug(f"Short code not found: {short_code}")
            raise LinkServiceError.not_found(f"Short code '{short_code}' not found")

        if link.is_expired():
            raise LinkServiceError.expired(f"Short code '{short_code}' has expired")

        await self._warm_cache(link)

        try:
            await self._increment_access_count(short_code)
        except StoreError as e:
            self.logger.error(f"Failed to increment access count for {short_code}: {e}")

        return link.original_url

    async def info(self, short_code: str) -> Link:
        """Get stored information about a short link, expired or not.

        Raises:
            LinkServiceError: NOT_FOUND or UNAVAILABLE
        """
        with self._store_errors("look up short link"):
            link = await self.store.get_by_code(short_code)

        if link is None:
            raise LinkServiceError.not_found(f"Short code '{short_code}' not found")
        return link

    async def stats(self) -> LinkStats:
        """Aggregate counts over all links."""
        with self._store_errors("compute statistics"):
            return await self.store.aggregate_stats(utcnow())

    async def clean_expired(self) -> int:
        """Delete every link whose expiry is in the past.

        Returns:
            Number of links removed
        """
        with self._store_errors("delete expired links"):
            deleted = await self.store.delete_expired(utcnow())

        self.logger.info(f"Cleaned {deleted} expired links")
        return deleted

    async def list_links(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Link]:
        """List links created in [start, end], newest first.

        Missing bounds default to the epoch and now.
        """
        start = as_utc(start) or datetime(1970, 1, 1, tzinfo=timezone.utc)
        end = as_utc(end) or utcnow()
        if start > end:
            raise LinkServiceError.invalid_input("start must not be after end")
        if limit < 1 or offset < 0:
            raise LinkServiceError.invalid_input("limit must be positive and offset non-negative")

        with self._store_errors("list short links"):
            return await self.store.list_by_time_range(start, end, limit, offset)

    async def warm_membership_filter(self, batch_size: int = 1000) -> int:
        """Load every stored short code into the membership filter.

        Returns:
            Number of codes submitted to the filter
        """
        if self.membership is None:
            return 0

        start = datetime(1970, 1, 1, tzinfo=timezone.utc)
        end = utcnow()
        offset = 0
        total = 0

        while True:
            with self._store_errors("list short links"):
                links = await self.store.list_by_time_range(start, end, batch_size, offset)
            if not links:
                break

            codes = [link.short_code for link in links]
            try:
                await self.membership.add_many(codes)
            except MembershipFilterError as e:
                self.logger.warning(f"Stopped warming membership filter: {e}")
                return total

            total += len(codes)
            offset += len(links)
            if len(links) < batch_size:
                break

        self.logger.info(f"Membership filter warmed with {total} short codes")
        return total

    async def membership_info(self) -> Dict[str, Any]:
        """Diagnostic information from the membership filter."""
        if self.membership is None:
            return {"backend": "none"}
        try:
            return await self.membership.info()
        except MembershipFilterError as e:
            raise LinkServiceError.unavailable(str(e)) from e

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status; only the store decides "overall"
        """
        database_healthy = await self.store.health_check()

        cache_healthy = True
        if self.cache:
            cache_healthy = await self.cache.health_check()

        membership_healthy = True
        if self.membership:
            try:
                await self.membership.info()
            except MembershipFilterError as e:
                self.logger.warning(f"Membership filter unhealthy: {e}")
                membership_healthy = False

        return {
            "database": database_healthy,
            "cache": cache_healthy,
            "membership": membership_healthy,
            "overall": database_healthy,
        }

    async def _generate_unique_short_code(self) -> str:
        """Generate a random short code that is neither reserved nor taken.

        Raises:
            LinkServiceError: INTERNAL if every attempt collided
        """
        for attempt in range(self.max_generation_attempts):
            code = self.generator.generate_random()
            if is_reserved_code(code):
                continue

            if not await self._code_taken(code):
                if attempt:
                    self.logger.debug(f"Generated code after {attempt + 1} attempts: {code}")
                return code

        raise LinkServiceError.internal(
            f"Unable to generate a unique short code after {self.max_generation_attempts} attempts"
        )

    async def _code_taken(self, short_code: str) -> bool:
        """Two-tier existence check: membership filter first, then the store.

        A "definitely absent" answer from the filter is trusted; "possibly
        present" or a filter failure is confirmed against the store.
        """
        if self.membership is not None:
            try:
                if not await self.membership.exists(short_code):
                    return False
            except MembershipFilterError as e:
                self.logger.warning(f"Membership filter check failed for {short_code}: {e}")

        return await self.store.exists(short_code)

    async def _register_code(self, short_code: str) -> None:
        if self.membership is None:
            return
        try:
            await self.membership.add(short_code)
        except MembershipFilterError as e:
            self.logger.warning(f"Failed to add {short_code} to membership filter: {e}")

    async def _warm_cache(self, link: Link) -> None:
        """Cache code -> URL, never past the link's own expiry."""
        if self.cache is None:
            return

        ttl = self.cache.ttl_seconds
        if link.expires_at is not None:
            remaining = int((link.expires_at - utcnow()).total_seconds())
            if remaining < 1:
                return
            ttl = min(ttl, remaining)

        key = self.cache.cache_key(link.short_code)
        try:
            if ttl == self.cache.ttl_seconds:
                await self.cache.set_default(key, link.original_url)
            else:
                await self.cache.set(key, link.original_url, ttl)
        except CacheError as e:
            self.logger.warning(f"Failed to cache {link.short_code}: {e}")

    async def _increment_access_count(self, short_code: str) -> None:
        if not await self.store.increment_access_count(short_code):
            self.logger.debug(f"Access count not incremented, {short_code} no longer exists")

    def _is_possible_code(self, short_code: str) -> bool:
        min_length = min(self.custom_code_min_length, self.generator.default_length)
        max_length = max(self.custom_code_max_length, self.generator.default_length)
        return (
            min_length <= len(short_code or "") <= max_length
            and self.generator.is_valid_code(short_code)
        )

    async def close(self) -> None:
        """Close service connections."""
        await self.task_pool.close()
        await self.store.close()
        if self.cache:
            await self.cache.close()
