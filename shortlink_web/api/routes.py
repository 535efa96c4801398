"""API routes implementation."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query, Request, status

from shortlink.common.headers import build_base_url
from shortlink.common.url_builder import build_short_url
from shortlink.database.models import Link

from ..deadline import with_deadline
from .schemas import (
    CleanupResponse,
    ErrorResponse,
    LinkInfoResponse,
    LinkListResponse,
    MembershipInfoResponse,
    ShortenRequest,
    ShortenResponse,
    StatisticsResponse,
)

router = APIRouter()


def _info_response(link: Link) -> LinkInfoResponse:
    return LinkInfoResponse(
        short_code=link.short_code,
        original_url=link.original_url,
        access_count=link.access_count,
        created_at=link.created_at,
        expires_at=link.expires_at,
    )


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a custom short code and an expiry.",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.service
    config = request.app.state.config

    summary = await with_deadline(
        request,
        service.create(
            url=body.url,
            custom_code=body.custom_code,
            expires_at=body.expires_at,
        ),
    )

    # Behind a proxy, advertise the host the client actually used
    base_url = build_base_url(dict(request.headers), config.base_url)
    short_url = build_short_url(summary.short_code, base_url, config.path_prefix)

    return ShortenResponse(
        short_url=short_url,
        short_code=summary.short_code,
        original_url=summary.original_url,
        expires_at=summary.expires_at,
        created_at=summary.created_at,
    )


@router.get(
    "/info/{short_code}",
    response_model=LinkInfoResponse,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Get link information",
    description="Get information about a short link, including expired ones.",
)
async def get_link_info(request: Request, short_code: str):
    """Get information about a short link."""
    link = await with_deadline(request, request.app.state.service.info(short_code))
    return _info_response(link)


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get aggregate link and access counts.",
)
async def get_statistics(request: Request):
    """Get service statistics."""
    stats = await with_deadline(request, request.app.state.service.stats())
    return StatisticsResponse(**stats.to_dict())


@router.get(
    "/links",
    response_model=LinkListResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid time range"}},
    summary="List links",
    description="List links created within a time range, newest first.",
)
async def list_links(
    request: Request,
    start: Optional[datetime] = Query(None, description="Earliest creation time"),
    end: Optional[datetime] = Query(None, description="Latest creation time"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    """List links by creation time."""
    links = await with_deadline(
        request,
        request.app.state.service.list_links(start=start, end=end, limit=limit, offset=offset),
    )
    return LinkListResponse(links=[_info_response(link) for link in links], count=len(links))


@router.post(
    "/admin/clean",
    response_model=CleanupResponse,
    summary="Remove expired links",
    description="Delete every link whose expiry is in the past.",
)
async def clean_expired_links(request: Request):
    """Delete expired links."""
    deleted = await with_deadline(request, request.app.state.service.clean_expired())
    return CleanupResponse(deleted_count=deleted, timestamp=datetime.now(timezone.utc))


@router.get(
    "/admin/membership",
    response_model=MembershipInfoResponse,
    summary="Membership filter diagnostics",
)
async def membership_info(request: Request):
    """Return membership filter diagnostics."""
    info = await with_deadline(request, request.app.state.service.membership_info())
    return MembershipInfoResponse(info=info)
