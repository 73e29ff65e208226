"""Tests for the indexer client, throttle, retry policy and response cache."""

import httpx
import pytest

from cardano_tx_export.indexer import (
    IndexerClient,
    NotFoundError,
    RateLimitedError,
    RateLimiter,
    ResponseCache,
    RetryConfig,
    UpstreamError,
)

ADDRESS_PATH = "/addresses/addr_a/transactions?page=1&order=desc"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_sends_project_id_header(indexer, client):
    """Test that every request carries the project credential."""
    indexer.ok(ADDRESS_PATH, [])

    await client.get_address_transactions("addr_a", 1)

    assert indexer.headers[0]["project_id"] == "test-project"


@pytest.mark.asyncio
async def test_parses_transaction_refs(indexer, client):
    """Test typed decoding of an address transaction page."""
    indexer.ok(ADDRESS_PATH, [indexer.ref("tx_a", 1_700_000_000), indexer.ref("tx_b", 1_600_000_000)])

    refs = await client.get_address_transactions("addr_a", 1)

    assert [r.tx_hash for r in refs] == ["tx_a", "tx_b"]
    assert refs[0].block_time == 1_700_000_000


@pytest.mark.asyncio
async def test_retries_rate_limited_request(indexer, client, sleeps):
    """Test that two 429 responses followed by a success return the data."""
    indexer.add(ADDRESS_PATH, (429, {}), (429, {}), (200, [indexer.ref("tx_a")]))

    refs = await client.get_address_transactions("addr_a", 1)

    assert [r.tx_hash for r in refs] == ["tx_a"]
    assert indexer.count("/addresses/") == 3
    assert sleeps == pytest.approx([0.1, 0.2])


@pytest.mark.asyncio
async def test_rate_limited_after_retry_budget(indexer, client, sleeps):
    """Test that four consecutive 429 responses raise RateLimitedError."""
    indexer.add(ADDRESS_PATH, (429, {}))

    with pytest.raises(RateLimitedError) as exc_info:
        await client.get_address_transactions("addr_a", 1)

    assert exc_info.value.attempts == 4
    assert indexer.count("/addresses/") == 4
    assert sleeps == pytest.approx([0.1, 0.2, 0.4])


@pytest.mark.asyncio
async def test_not_found(indexer, client):
    """Test that HTTP 404 maps to NotFoundError without retrying."""
    with pytest.raises(NotFoundError):
        await client.get_transaction("missing")

    assert indexer.count("/txs/missing") == 1


@pytest.mark.asyncio
async def test_upstream_error_keeps_status(indexer, client):
    """Test that other HTTP errors map to UpstreamError with the status code."""
    indexer.add("/txs/broken", (500, {"error": "Internal Server Error"}))

    with pytest.raises(UpstreamError) as exc_info:
        await client.get_transaction("broken")

    assert exc_info.value.status_code == 500
    assert "500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unexpected_shape_is_upstream_error(indexer, client):
    """Test that a body that does not match the schema raises UpstreamError."""
    indexer.ok("/txs/odd", {"unexpected": True})

    with pytest.raises(UpstreamError):
        await client.get_transaction("odd")


@pytest.mark.asyncio
async def test_transport_failure_is_upstream_error(fake_sleep):
    """Test that connection errors are wrapped."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = IndexerClient(
        project_id="test-project",
        base_url="https://indexer.test",
        rate_limiter=RateLimiter(min_interval=0.0),
        transport=httpx.MockTransport(handler),
        sleep=fake_sleep,
    )

    with pytest.raises(UpstreamError) as exc_info:
        await client.get_transaction("tx_a")

    assert exc_info.value.status_code is None
    await client.close()


@pytest.mark.asyncio
async def test_cache_serves_repeat_requests(indexer, fake_sleep):
    """Test that cached responses skip the network."""
    indexer.ok(ADDRESS_PATH, [indexer.ref("tx_a")])

    async with IndexerClient(
        project_id="test-project",
        base_url="https://indexer.test",
        rate_limiter=RateLimiter(min_interval=0.0),
        cache=ResponseCache(default_ttl=30.0),
        transport=httpx.MockTransport(indexer.handler),
        sleep=fake_sleep,
    ) as client:
        first = await client.get_address_transactions("addr_a", 1)
        second = await client.get_address_transactions("addr_a", 1)

    assert first == second
    assert indexer.count("/addresses/") == 1


def test_retry_delays_grow_exponentially():
    """Test backoff delays and their ceiling."""
    config = RetryConfig(max_retries=3, base_delay=0.1, max_delay=0.3)

    assert config.max_attempts == 4
    assert config.get_delay(0) == pytest.approx(0.1)
    assert config.get_delay(1) == pytest.approx(0.2)
    assert config.get_delay(2) == pytest.approx(0.3)


@pytest.mark.asyncio
async def test_rate_limiter_spaces_requests():
    """Test that the limiter waits out the remainder of the interval."""
    clock = FakeClock()
    waits: list[float] = []

    async def sleep(seconds: float) -> None:
        waits.append(seconds)
        clock.now += seconds

    limiter = RateLimiter(min_interval=0.1, clock=clock, sleep=sleep)

    await limiter.acquire()
    clock.now += 0.04
    await limiter.acquire()
    clock.now += 0.5
    await limiter.acquire()

    assert waits == pytest.approx([0.06])
    assert limiter.last_call == pytest.approx(100.6)


def test_cache_expires_entries():
    """Test TTL expiry and cleanup."""
    clock = FakeClock()
    cache = ResponseCache(default_ttl=30.0, clock=clock)

    cache.set("/a", {"x": 1})
    cache.set("/b", {"y": 2}, ttl=60.0)
    assert cache.get("/a") == {"x": 1}
    assert len(cache) == 2

    clock.now += 31
    assert cache.get("/a") is None
    assert cache.get("/b") == {"y": 2}

    clock.now += 30
    assert cache.cleanup_expired() == 1
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_close_releases_http_client(indexer, fake_sleep):
    """Test that closing the client closes its connection pool."""
    client = IndexerClient(
        project_id="test-project",
        base_url="https://indexer.test",
        transport=httpx.MockTransport(indexer.handler),
        sleep=fake_sleep,
    )

    await client.close()

    assert client.client.is_closed
