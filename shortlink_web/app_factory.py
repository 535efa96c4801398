"""FastAPI application factory."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlink.common.logging_config import get_logger
from shortlink.errors import ErrorKind, LinkServiceError

from .api import api_router
from .middleware.logging import LoggingMiddleware
from .web import web_router

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.EXPIRED: 410,
}


async def _service_error_handler(request: Request, exc: LinkServiceError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        get_logger("shortlink.web").error(
            f"{request.method} {request.url.path} failed: {exc.kind.value}: {exc.message}"
        )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind.value, "detail": exc.message},
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": ErrorKind.INVALID_INPUT.value, "detail": errors},
    )


def create_app(service_instance, config, lifespan=None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        service_instance: LinkService instance (may be set later by lifespan)
        config: Configuration instance
        lifespan: Optional lifespan context manager

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Short Link Service",
        description="Create short links and resolve them to their targets",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.service = service_instance
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(LinkServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(api_router, prefix="/api/v1", tags=["API"])
    # Registered last: the redirect route matches any single path segment
    app.include_router(web_router, tags=["Web"])

    return app
