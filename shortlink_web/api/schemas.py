"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten; http:// is assumed without a scheme")
    custom_code: Optional[str] = Field(None, description="Optional custom short code (3-20 letters/digits)")
    expires_at: Optional[datetime] = Field(None, description="Optional expiry timestamp")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://example.com/very/long/path/to/resource",
                },
                {
                    "url": "https://github.com/user/repo",
                    "custom_code": "myrepo",
                    "expires_at": "2030-01-01T00:00:00Z",
                },
            ]
        }
    }


class ShortenResponse(BaseModel):
    """Response after shortening a URL."""

    short_url: str = Field(..., description="The complete short URL")
    short_code: str = Field(..., description="The short code")
    original_url: str = Field(..., description="The normalized target URL")
    expires_at: Optional[datetime] = Field(None, description="Expiry timestamp, if any")
    created_at: datetime = Field(..., description="Creation timestamp")


class LinkInfoResponse(BaseModel):
    """Response with link information."""

    short_code: str
    original_url: str
    access_count: int
    created_at: datetime
    expires_at: Optional[datetime] = None


class LinkListResponse(BaseModel):
    """Links created within a time range."""

    links: List[LinkInfoResponse]
    count: int


class StatisticsResponse(BaseModel):
    """Statistics response."""

    total_links: int
    total_accesses: int
    active_links: int
    expired_links: int
    permanent_links: int


class CleanupResponse(BaseModel):
    """Result of removing expired links."""

    deleted_count: int
    timestamp: datetime


class MembershipInfoResponse(BaseModel):
    """Diagnostic information from the membership filter."""

    info: Dict[str, Any]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    membership: str = Field(..., description="Membership filter status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error kind")
    detail: Optional[str] = Field(None, description="Detailed error information")
