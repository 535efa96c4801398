"""Public routes: health check and short link redirects."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from ..api.schemas import HealthResponse
from ..deadline import with_deadline

router = APIRouter()


def _label(healthy: bool) -> str:
    return "healthy" if healthy else "unhealthy"


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    health = await request.app.state.service.health_check()

    body = HealthResponse(
        status=_label(health["overall"]),
        database=_label(health["database"]),
        cache=_label(health["cache"]),
        membership=_label(health["membership"]),
        timestamp=datetime.now(timezone.utc),
    )
    status_code = status.HTTP_200_OK if health["overall"] else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=body.model_dump(mode="json"), status_code=status_code)


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_url(request: Request, short_code: str):
    """Redirect to the original URL (302 so every hit reaches the service)."""
    original_url = await with_deadline(request, request.app.state.service.resolve(short_code))
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
