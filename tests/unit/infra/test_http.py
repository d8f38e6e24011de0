"""Tests for RateLimitedClient pacing and Retry-After parsing."""

import time
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime

import httpx

from walletscope.infra.http.rate_limited_client import RateLimitedClient
from walletscope.infra.http.retry_after import parse_retry_after


class TestParseRetryAfter:
    def test_delta_seconds(self):
        assert parse_retry_after("5") == 5.0

    def test_fractional_seconds(self):
        assert parse_retry_after("1.5") == 1.5

    def test_negative_clamped_to_zero(self):
        assert parse_retry_after("-3") == 0.0

    def test_http_date(self):
        when = datetime.now(UTC) + timedelta(seconds=30)
        delay = parse_retry_after(format_datetime(when, usegmt=True))
        assert delay is not None
        assert 25 <= delay <= 30

    def test_http_date_in_past_is_zero(self):
        when = datetime.now(UTC) - timedelta(minutes=5)
        assert parse_retry_after(format_datetime(when, usegmt=True)) == 0.0

    def test_missing_or_garbage(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after("") is None
        assert parse_retry_after("soon") is None

    def test_non_finite_rejected(self):
        assert parse_retry_after("inf") is None
        assert parse_retry_after("-inf") is None
        assert parse_retry_after("nan") is None


class TestRateLimitedClient:
    async def test_post_sends_json(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": 1})

        async with RateLimitedClient(rate_per_second=0, transport=httpx.MockTransport(handler)) as client:
            resp = await client.post("https://rpc.test", json={"method": "getSlot"})

        assert resp.status_code == 200
        assert resp.json()["result"] == 1
        assert seen[0].method == "POST"

    async def test_requests_are_spaced(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        async with RateLimitedClient(rate_per_second=20.0, transport=httpx.MockTransport(handler)) as client:
            start = time.monotonic()
            for _ in range(3):
                await client.get("https://price.test")
            elapsed = time.monotonic() - start

        # 3 requests at 20/s need at least 2 intervals of 50ms
        assert elapsed >= 0.09

    async def test_retry_after_header_exposed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "4"})

        async with RateLimitedClient(rate_per_second=0, transport=httpx.MockTransport(handler)) as client:
            resp = await client.get("https://price.test")

        assert resp.status_code == 429
        assert parse_retry_after(resp.headers.get("Retry-After")) == 4.0
