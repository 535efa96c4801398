"""Data models for the link store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Link:
    """Represents a short link row in the store."""

    short_code: str
    original_url: str
    created_at: datetime
    updated_at: datetime
    id: Optional[int] = None
    access_count: int = 0
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True if the link has an expiry that is already in the past."""
        if self.expires_at is None:
            return False
        now = now or utcnow()
        return as_utc(self.expires_at) < now

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "short_code": self.short_code,
            "original_url": self.original_url,
            "access_count": self.access_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_record(cls, record) -> "Link":
        """Create from a database row or mapping."""
        return cls(
            id=record["id"],
            short_code=record["short_code"],
            original_url=record["original_url"],
            access_count=record["access_count"],
            created_at=as_utc(record["created_at"]),
            updated_at=as_utc(record["updated_at"]),
            expires_at=as_utc(record["expires_at"]),
        )


@dataclass
class LinkStats:
    """Aggregate counts over all stored links."""

    total_links: int = 0
    total_accesses: int = 0
    active_links: int = 0
    expired_links: int = 0

    @property
    def permanent_links(self) -> int:
        return self.total_links - self.active_links - self.expired_links

    def to_dict(self) -> dict:
        return {
            "total_links": self.total_links,
            "total_accesses": self.total_accesses,
            "active_links": self.active_links,
            "expired_links": self.expired_links,
            "permanent_links": self.permanent_links,
        }


@dataclass
class LinkSummary:
    """Result of creating a short link."""

    short_url: str
    short_code: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = field(default=None)
