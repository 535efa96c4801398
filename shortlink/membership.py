"""Probabilistic membership filters for short codes.

A membership filter answers "possibly present" or "definitely absent" for a
short code. It never produces false negatives, so a negative answer lets the
service skip the database entirely. Backend failures raise
``MembershipFilterError`` instead of returning ``False``.
"""

import hashlib
import logging
import math
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from .errors import MembershipFilterError


class MembershipFilter(ABC):
    """Abstract base class for membership filter backends."""

    def __init__(self, capacity: int, error_rate: float):
        """Initialize filter parameters.

        Args:
            capacity: Expected number of items
            error_rate: Target false-positive probability (0 < rate < 1)
        """
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if not 0 < error_rate < 1:
            raise ValueError("error_rate must be between 0 and 1")
        self.capacity = capacity
        self.error_rate = error_rate

    @abstractmethod
    async def initialize(self) -> None:
        """Create the underlying structure if it does not exist yet."""
        pass

    @abstractmethod
    async def add(self, item: str) -> bool:
        """Add an item.

        Returns:
            True if the item was newly added, False if it may already be present
        """
        pass

    @abstractmethod
    async def add_many(self, items: List[str]) -> List[bool]:
        """Add several items, returning a per-item result."""
        pass

    @abstractmethod
    async def exists(self, item: str) -> bool:
        """Check whether an item is possibly present."""
        pass

    @abstractmethod
    async def exists_many(self, items: List[str]) -> List[bool]:
        """Check several items, returning a per-item result."""
        pass

    @abstractmethod
    async def info(self) -> Dict[str, Any]:
        """Diagnostic information about the filter."""
        pass


class InMemoryBloomFilter(MembershipFilter):
    """Bloom filter kept in process memory.

    Contents are lost on restart; pair with
    ``LinkService.warm_membership_filter`` to rebuild from the store.
    """

    def __init__(
        self,
        capacity: int = 1_000_000,
        error_rate: float = 0.001,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(capacity, error_rate)
        self.logger = logger or logging.getLogger(__name__)

        # Optimal sizing: m = -n ln p / (ln 2)^2, k = m/n ln 2
        self.num_bits = max(8, int(math.ceil(-capacity * math.log(error_rate) / (math.log(2) ** 2))))
        self.num_hashes = max(1, int(round(self.num_bits / capacity * math.log(2))))
        self._bits: Optional[bytearray] = None
        self._inserted = 0

    async def initialize(self) -> None:
        if self._bits is not None:
            return
        self._bits = bytearray((self.num_bits + 7) // 8)
        self.logger.info(
            f"In-memory bloom filter created: bits={self.num_bits}, hashes={self.num_hashes}"
        )

    def _positions(self, item: str) -> Iterable[int]:
        # Kirsch-Mitzenmacher double hashing
        digest = hashlib.blake2b(item.encode("utf-8"), digest_size=16).digest()
        h1 = int.from_bytes(digest[:8], "big")
        h2 = int.from_bytes(digest[8:], "big") | 1
        for i in range(self.num_hashes):
            yield (h1 + i * h2) % self.num_bits

    def _require_bits(self) -> bytearray:
        if self._bits is None:
            raise MembershipFilterError("Bloom filter is not initialized")
        return self._bits

    def _add_one(self, item: str) -> bool:
        bits = self._require_bits()
        added = False
        for pos in self._positions(item):
            byte, mask = pos >> 3, 1 << (pos & 7)
            if not bits[byte] & mask:
                bits[byte] |= mask
                added = True
        if added:
            self._inserted += 1
        return added

    def _exists_one(self, item: str) -> bool:
        bits = self._require_bits()
        return all(bits[pos >> 3] & (1 << (pos & 7)) for pos in self._positions(item))

    async def add(self, item: str) -> bool:
        return self._add_one(item)

    async def add_many(self, items: List[str]) -> List[bool]:
        return [self._add_one(item) for item in items]

    async def exists(self, item: str) -> bool:
        return self._exists_one(item)

    async def exists_many(self, items: List[str]) -> List[bool]:
        return [self._exists_one(item) for item in items]

    async def info(self) -> Dict[str, Any]:
        bits = self._require_bits()
        set_bits = sum(bin(b).count("1") for b in bits)
        return {
            "backend": "memory",
            "capacity": self.capacity,
            "error_rate": self.error_rate,
            "size_bits": self.num_bits,
            "hash_functions": self.num_hashes,
            "items_inserted": self._inserted,
            "fill_ratio": set_bits / self.num_bits,
        }


class RedisBloomFilter(MembershipFilter):
    """Bloom filter stored in Redis via the RedisBloom module."""

    def __init__(
        self,
        client,
        key: str = "used_short_codes",
        capacity: int = 1_000_000,
        error_rate: float = 0.001,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis bloom filter.

        Args:
            client: Connected ``redis.asyncio.Redis`` client
            key: Redis key holding the filter
            capacity: Expected number of items
            error_rate: Target false-positive probability
            logger: Optional logger instance
        """
        super().__init__(capacity, error_rate)
        self.client = client
        self.key = key
        self.logger = logger or logging.getLogger(__name__)

    async def initialize(self) -> None:
        try:
            if await self.client.exists(self.key):
                self.logger.debug(f"Bloom filter {self.key} already exists")
                return
            await self.client.bf().reserve(self.key, self.error_rate, self.capacity)
            self.logger.info(
                f"Bloom filter {self.key} reserved: capacity={self.capacity}, error_rate={self.error_rate}"
            )
        except Exception as e:
            raise MembershipFilterError(f"Failed to initialize bloom filter: {e}") from e

    async def add(self, item: str) -> bool:
        try:
            return bool(await self.client.bf().add(self.key, item))
        except Exception as e:
            raise MembershipFilterError(f"Bloom filter add failed: {e}") from e

    async def add_many(self, items: List[str]) -> List[bool]:
        if not items:
            return []
        try:
            results = await self.client.bf().madd(self.key, *items)
        except Exception as e:
            raise MembershipFilterError(f"Bloom filter madd failed: {e}") from e
        return [bool(r) for r in results]

    async def exists(self, item: str) -> bool:
        try:
            return bool(await self.client.bf().exists(self.key, item))
        except Exception as e:
            raise MembershipFilterError(f"Bloom filter exists failed: {e}") from e

    async def exists_many(self, items: List[str]) -> List[bool]:
        if not items:
            return []
        try:
            results = await self.client.bf().mexists(self.key, *items)
        except Exception as e:
            raise MembershipFilterError(f"Bloom filter mexists failed: {e}") from e
        return [bool(r) for r in results]

    async def info(self) -> Dict[str, Any]:
        try:
            raw = await self.client.bf().info(self.key)
        except Exception as e:
            raise MembershipFilterError(f"Bloom filter info failed: {e}") from e

        capacity = getattr(raw, "capacity", None) or self.capacity
        inserted = getattr(raw, "insertedNum", 0) or 0
        return {
            "backend": "redis",
            "key": self.key,
            "capacity": capacity,
            "error_rate": self.error_rate,
            "size_bytes": getattr(raw, "size", None),
            "filters": getattr(raw, "filterNum", None),
            "items_inserted": inserted,
            "expansion_rate": getattr(raw, "expansionRate", None),
            "fill_ratio": inserted / capacity if capacity else 0.0,
        }
