"""Abstract base class for link store implementations."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .models import Link, LinkStats


class LinkStoreBase(ABC):
    """Authoritative, durable record of short links.

    Implementations raise ``StoreError`` on backend failure and
    ``DuplicateShortCodeError`` when the uniqueness constraint on
    ``short_code`` rejects an insert. A missing row is never an error.
    """

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    @abstractmethod
    async def insert(
        self,
        short_code: str,
        original_url: str,
        expires_at: Optional[datetime] = None,
    ) -> Link:
        """Insert a new link.

        The store assigns id, created_at and updated_at.

        Args:
            short_code: The short code to use
            original_url: Normalized target URL
            expires_at: Optional expiry timestamp

        Returns:
            The stored link

        Raises:
            DuplicateShortCodeError: If short_code already exists
        """
        pass

    @abstractmethod
    async def get_by_code(self, short_code: str) -> Optional[Link]:
        """Get a link by short code.

        Returns:
            The link if found, None otherwise
        """
        pass

    @abstractmethod
    async def exists(self, short_code: str) -> bool:
        """Check if a short code is already taken."""
        pass

    @abstractmethod
    async def increment_access_count(self, short_code: str) -> bool:
        """Increment the access count for a short code.

        Returns:
            True if a row was updated, False if the code is unknown
        """
        pass

    @abstractmethod
    async def list_by_time_range(
        self,
        start: datetime,
        end: datetime,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Link]:
        """List links created within [start, end], newest first."""
        pass

    @abstractmethod
    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        """Delete links whose expires_at is set and strictly before now.

        Returns:
            Number of rows removed
        """
        pass

    @abstractmethod
    async def aggregate_stats(self, now: Optional[datetime] = None) -> LinkStats:
        """Aggregate counts over all links."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass
