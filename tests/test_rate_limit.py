"""
Profile Service - Rate Limiter Tests
======================================

What we test:
    ✅ Sliding window admits up to the quota, then rejects
    ✅ Old timestamps leave the window
    ✅ Keys are counted independently, inactive keys are pruned
    ✅ The middleware answers over-quota requests with the 429 envelope
"""

import pytest
from httpx import ASGITransport, AsyncClient

from profile_service.main import create_app
from profile_service.middleware.rate_limit import RateLimiter


class TestRateLimiter:

    def test_admits_up_to_quota(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60)

        results = [limiter.hit("1.2.3.4", now=100.0 + i) for i in range(3)]

        assert results == [None, None, None]
        assert limiter.count("1.2.3.4") == 3

    def test_rejects_over_quota_with_retry_after(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        limiter.hit("ip", now=100.0)
        limiter.hit("ip", now=110.0)

        retry_after = limiter.hit("ip", now=120.0)

        # Oldest hit (100) leaves the window at 160
        assert retry_after == 41
        assert limiter.count("ip") == 2

    def test_window_slides(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        limiter.hit("ip", now=100.0)
        limiter.hit("ip", now=110.0)

        assert limiter.hit("ip", now=161.0) is None

    def test_keys_are_independent(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)

        assert limiter.hit("a", now=1.0) is None
        assert limiter.hit("b", now=1.0) is None
        assert limiter.hit("a", now=2.0) is not None

    def test_uses_clock_when_now_omitted(self):
        now = [1000.0]
        limiter = RateLimiter(max_requests=1, window_seconds=10, clock=lambda: now[0])

        assert limiter.hit("ip") is None
        assert limiter.hit("ip") is not None
        now[0] += 11
        assert limiter.hit("ip") is None

    def test_inactive_keys_are_pruned(self):
        limiter = RateLimiter(max_requests=10, window_seconds=10)
        limiter.CLEANUP_EVERY = 2
        limiter.hit("old", now=0.0)

        limiter.hit("new", now=100.0)

        assert "old" not in limiter._requests
        assert limiter.count("new") == 1

    def test_reset(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.hit("ip", now=1.0)

        limiter.reset()

        assert limiter.count("ip") == 0


class TestRateLimitMiddleware:

    @pytest.mark.asyncio
    async def test_over_quota_request_gets_429_envelope(self, identity_provider):
        app = create_app(identity_provider=identity_provider)
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            for _ in range(100):
                response = await client.get("/")
                assert response.status_code == 200

            response = await client.get("/")

        assert response.status_code == 429
        assert int(response.headers["retry-after"]) > 0
        assert response.json() == {
            "success": False,
            "code": 429,
            "message": "Too many requests from this IP, please try again later",
            "data": {},
        }

    @pytest.mark.asyncio
    async def test_each_app_has_its_own_counters(self, identity_provider):
        first = create_app(identity_provider=identity_provider)
        second = create_app(identity_provider=identity_provider)

        async with AsyncClient(transport=ASGITransport(app=first), base_url="http://test") as c:
            for _ in range(101):
                await c.get("/")
        async with AsyncClient(transport=ASGITransport(app=second), base_url="http://test") as c:
            response = await c.get("/")

        assert response.status_code == 200
