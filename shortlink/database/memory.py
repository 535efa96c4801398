"""In-memory link store, for development and tests."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from .base import LinkStoreBase
from .exceptions import DuplicateShortCodeError
from .models import Link, LinkStats, as_utc, utcnow


class InMemoryLinkStore(LinkStoreBase):
    """Dict-backed implementation of the link store contract.

    Each operation completes without yielding to the event loop, so
    concurrent coroutines never observe partial updates.
    """

    def __init__(self, db_config: str = "memory://", logger: Optional[logging.Logger] = None):
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self._links: Dict[str, Link] = {}
        self._next_id = 1

    async def insert(
        self,
        short_code: str,
        original_url: str,
        expires_at: Optional[datetime] = None,
    ) -> Link:
        if short_code in self._links:
            raise DuplicateShortCodeError(f"Short code already exists: {short_code}")

        now = utcnow()
        link = Link(
            id=self._next_id,
            short_code=short_code,
            original_url=original_url,
            access_count=0,
            created_at=now,
            updated_at=now,
            expires_at=as_utc(expires_at),
        )
        self._next_id += 1
        self._links[short_code] = link
        self.logger.debug(f"Inserted link {short_code} -> {original_url}")
        return self._copy(link)

    async def get_by_code(self, short_code: str) -> Optional[Link]:
        link = self._links.get(short_code)
        return self._copy(link) if link else None

    async def exists(self, short_code: str) -> bool:
        return short_code in self._links

    async def increment_access_count(self, short_code: str) -> bool:
        link = self._links.get(short_code)
        if link is None:
            return False
        link.access_count += 1
        link.updated_at = utcnow()
        return True

    async def list_by_time_range(
        self,
        start: datetime,
        end: datetime,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Link]:
        start, end = as_utc(start), as_utc(end)
        matches = [
            link for link in self._links.values()
            if start <= link.created_at <= end
        ]
        matches.sort(key=lambda link: (link.created_at, link.id), reverse=True)
        return [self._copy(link) for link in matches[offset:offset + limit]]

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        now = as_utc(now) or utcnow()
        expired = [
            code for code, link in self._links.items()
            if link.expires_at is not None and link.expires_at < now
        ]
        for code in expired:
            del self._links[code]
        return len(expired)

    async def aggregate_stats(self, now: Optional[datetime] = None) -> LinkStats:
        now = as_utc(now) or utcnow()
        stats = LinkStats()
        for link in self._links.values():
            stats.total_links += 1
            stats.total_accesses += link.access_count
            if link.expires_at is None:
                continue
            if link.expires_at < now:
                stats.expired_links += 1
            else:
                stats.active_links += 1
        return stats

    async def close(self) -> None:
        pass

    async def health_check(self) -> bool:
        return True

    def set_expiry(self, short_code: str, expires_at: Optional[datetime]) -> None:
        """Overwrite a link's expiry (administrative helper)."""
        link = self._links[short_code]
        link.expires_at = as_utc(expires_at)
        link.updated_at = utcnow()

    @staticmethod
    def _copy(link: Link) -> Link:
        return Link(**vars(link))
