"""
Unit Tests for Rate Limiting
============================
"""

from unittest.mock import AsyncMock

import pytest


def make_request(client_host="10.0.0.1", headers=None):
    from starlette.requests import Request

    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/send-otp",
        "headers": raw_headers,
        "client": (client_host, 54321),
    }
    return Request(scope)


class TestInMemoryRateLimiter:
    """Tests for the fixed window limiter."""

    def test_allows_up_to_rate(self, clock):
        """Should allow the 15th request and reject the 16th."""
        from waotp.rate_limit import InMemoryRateLimiter

        limiter = InMemoryRateLimiter(rate=15, window=900, clock=clock)
        results = [limiter.check("ip") for _ in range(16)]

        assert all(r.allowed for r in results[:15])
        assert results[14].remaining == 0
        assert not results[15].allowed
        assert results[15].retry_after == 900

    def test_window_resets(self, clock):
        from waotp.rate_limit import InMemoryRateLimiter

        limiter = InMemoryRateLimiter(rate=2, window=900, clock=clock)
        limiter.check("ip")
        limiter.check("ip")
        assert not limiter.check("ip").allowed

        clock.advance(899)
        assert not limiter.check("ip").allowed

        clock.advance(1)
        assert limiter.check("ip").allowed

    def test_rejections_not_counted(self, clock):
        """Blocked requests must not extend the block."""
        from waotp.rate_limit import InMemoryRateLimiter

        limiter = InMemoryRateLimiter(rate=1, window=60, clock=clock)
        limiter.check("ip")
        for _ in range(10):
            limiter.check("ip")
            clock.advance(1)

        clock.advance(50)
        result = limiter.check("ip")

        assert result.allowed
        assert result.remaining == 0

    def test_keys_are_independent(self, clock):
        from waotp.rate_limit import InMemoryRateLimiter

        limiter = InMemoryRateLimiter(rate=1, window=60, clock=clock)

        assert limiter.check("a").allowed
        assert not limiter.check("a").allowed
        assert limiter.check("b").allowed

    def test_prune_drops_closed_windows(self, clock):
        from waotp.rate_limit import InMemoryRateLimiter

        limiter = InMemoryRateLimiter(rate=5, window=60, clock=clock)
        limiter.check("a")
        clock.advance(30)
        limiter.check("b")
        clock.advance(30)

        assert limiter.prune(clock()) == 1

    def test_reset(self, clock):
        from waotp.rate_limit import InMemoryRateLimiter

        limiter = InMemoryRateLimiter(rate=1, window=60, clock=clock)
        limiter.check("ip")
        limiter.reset("ip")

        assert limiter.check("ip").allowed


class TestRedisRateLimiter:
    """Tests for the Redis limiter against a mocked client."""

    @pytest.mark.asyncio
    async def test_allowed_result(self):
        from waotp.rate_limit import RedisRateLimiter

        redis = AsyncMock()
        redis.script_load.return_value = "sha1"
        redis.evalsha.return_value = [1, 14, 15, 900]

        limiter = RedisRateLimiter(redis, rate=15, window=900)
        info = await limiter.check("ratelimit:send-otp:10.0.0.1")

        assert info.allowed
        assert info.remaining == 14
        assert info.retry_after is None
        redis.evalsha.assert_awaited_once_with("sha1", 1, "ratelimit:send-otp:10.0.0.1", 15, 900)

    @pytest.mark.asyncio
    async def test_blocked_result(self):
        from waotp.rate_limit import RedisRateLimiter

        redis = AsyncMock()
        redis.script_load.return_value = "sha1"
        redis.evalsha.return_value = [0, 0, 15, 420]

        info = await RedisRateLimiter(redis).check("key")

        assert not info.allowed
        assert info.retry_after == 420

    @pytest.mark.asyncio
    async def test_script_loaded_once(self):
        from waotp.rate_limit import RedisRateLimiter

        redis = AsyncMock()
        redis.script_load.return_value = "sha1"
        redis.evalsha.return_value = [1, 14, 15, 900]

        limiter = RedisRateLimiter(redis)
        await limiter.check("key")
        await limiter.check("key")

        redis.script_load.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reloads_script_after_cache_flush(self):
        """Should keep enforcing the limit after Redis forgets the script."""
        from redis.exceptions import NoScriptError
        from waotp.rate_limit import RedisRateLimiter

        redis = AsyncMock()
        redis.script_load.side_effect = ["sha1", "sha2"]
        redis.evalsha.side_effect = [
            [1, 14, 15, 900],
            NoScriptError("NOSCRIPT No matching script"),
            [0, 0, 15, 420],
            [0, 0, 15, 419],
        ]

        limiter = RedisRateLimiter(redis, rate=15, window=900)
        assert (await limiter.check("key")).allowed

        blocked = await limiter.check("key")
        assert not blocked.allowed
        assert blocked.retry_after == 420

        assert not (await limiter.check("key")).allowed
        assert redis.script_load.await_count == 2
        assert redis.evalsha.await_args.args[0] == "sha2"

    @pytest.mark.asyncio
    async def test_fails_open(self):
        """Should allow requests when Redis is unavailable."""
        from waotp.rate_limit import RedisRateLimiter

        redis = AsyncMock()
        redis.script_load.side_effect = ConnectionError("refused")

        info = await RedisRateLimiter(redis, rate=15).check("key")

        assert info.allowed
        assert info.remaining == 15


class TestClientIP:
    def test_uses_peer_address(self):
        from waotp.rate_limit import get_client_ip

        request = make_request(headers={"X-Forwarded-For": "203.0.113.9"})

        assert get_client_ip(request) == "10.0.0.1"

    def test_forwarded_for_when_trusted(self):
        from waotp.rate_limit import get_client_ip

        request = make_request(headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.2"})

        assert get_client_ip(request, trust_forwarded_for=True) == "203.0.113.9"


class TestRateLimitDependency:
    @pytest.mark.asyncio
    async def test_sets_quota_headers(self, clock):
        from starlette.responses import Response
        from waotp.rate_limit import InMemoryRateLimiter, rate_limit_dependency

        enforce = rate_limit_dependency(InMemoryRateLimiter(rate=3, window=60, clock=clock), "send-otp")
        response = Response()

        info = await enforce(make_request(), response)

        assert info.allowed
        assert response.headers["RateLimit-Limit"] == "3"
        assert response.headers["RateLimit-Remaining"] == "2"

    @pytest.mark.asyncio
    async def test_raises_when_exhausted(self, clock):
        from starlette.responses import Response
        from waotp.errors import RateLimitExceeded
        from waotp.rate_limit import InMemoryRateLimiter, rate_limit_dependency

        enforce = rate_limit_dependency(InMemoryRateLimiter(rate=1, window=60, clock=clock), "send-otp")
        await enforce(make_request(), Response())

        with pytest.raises(RateLimitExceeded) as exc_info:
            await enforce(make_request(), Response())

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 60
