"""Tests that concurrent requests keep the store consistent.

Many coroutines share one service, store and background pool. Creation
races on the same custom code must yield exactly one winner, and every
counted access must land.
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from shortlink.config import Config
from shortlink.errors import ErrorKind, LinkServiceError
from shortlink_web import create_app


@pytest.fixture
async def client(service):
    """Create test client (same app as test_api)."""
    config = Config(database_url="memory://", base_url="http://testserver")
    app = create_app(service_instance=service, config=config)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.mark.asyncio
class TestConcurrentRequests:
    """Prove the service handles many simultaneous requests."""

    async def test_concurrent_health_requests(self, client):
        """Many concurrent GET /health requests all succeed."""
        responses = await asyncio.gather(*[client.get("/health") for _ in range(50)])

        for i, r in enumerate(responses):
            assert r.status_code == 200, f"Request {i}: status {r.status_code}"
            assert r.json()["status"] == "healthy"

    async def test_concurrent_shorten_requests(self, client):
        """Concurrent creations with different URLs all succeed with unique codes."""
        concurrency = 30
        tasks = [
            client.post("/api/v1/shorten", json={"url": f"https://example.com/page_{i}"})
            for i in range(concurrency)
        ]
        responses = await asyncio.gather(*tasks)

        assert all(r.status_code == 201 for r in responses)
        short_codes = {r.json()["short_code"] for r in responses}
        assert len(short_codes) == concurrency

    async def test_concurrent_same_custom_code(self, client):
        """Racing creations of one custom code produce a single winner."""
        tasks = [
            client.post(
                "/api/v1/shorten",
                json={"url": f"https://example.com/{i}", "custom_code": "contested"},
            )
            for i in range(10)
        ]
        responses = await asyncio.gather(*tasks)

        statuses = sorted(r.status_code for r in responses)
        assert statuses.count(201) == 1
        assert statuses.count(409) == 9

    async def test_concurrent_service_creates(self, service):
        """Direct service calls racing on one code also yield one winner."""
        results = await asyncio.gather(
            *[service.create(f"https://example.com/{i}", custom_code="race") for i in range(10)],
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, LinkServiceError)]
        assert len(winners) == 1
        assert len(losers) == 9
        assert all(e.kind is ErrorKind.CONFLICT for e in losers)

    async def test_concurrent_redirects_count_every_access(self, client, task_pool):
        """Concurrent cache-hit redirects all reach the access counter."""
        await client.post("/api/v1/shorten", json={"url": "https://example.com", "custom_code": "busy"})

        responses = await asyncio.gather(*[client.get("/busy") for _ in range(25)])
        await task_pool.drain()

        assert all(r.status_code == 302 for r in responses)
        info = (await client.get("/api/v1/info/busy")).json()
        assert info["access_count"] == 25
