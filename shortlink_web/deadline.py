"""Request-scoped deadline for service calls."""

import asyncio
from typing import Awaitable, TypeVar

from fastapi import Request

from shortlink.errors import LinkServiceError

T = TypeVar("T")


async def with_deadline(request: Request, awaitable: Awaitable[T]) -> T:
    """Await a service call under the configured request timeout.

    The call is cancelled when the deadline passes, which also cancels any
    in-flight store or cache command.
    """
    timeout = request.app.state.config.request_timeout_seconds
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise LinkServiceError.unavailable(f"Request exceeded {timeout}s deadline") from e
