import asyncio

import httpx
import pytest

from conftest import FakeClock, FakeMetadataClient
from health_sidecar.models.metadata import UNKNOWN
from health_sidecar.services.metadata_service import (
    AVAILABILITY_ZONE_PATH,
    INSTANCE_ID_PATH,
    MetadataCache,
    MetadataClient,
)

BASE = "http://metadata.test/latest/meta-data"


# ----------------------------------------------------------------------
# MetadataCache
# ----------------------------------------------------------------------
@pytest.mark.asyncio
async def test_first_call_fetches_both_values():
    client = FakeMetadataClient()
    cache = MetadataCache(client, ttl=30.0, clock=FakeClock())

    meta = await cache.get_metadata()

    assert meta.instance_id == "i-0123456789abcdef0"
    assert meta.availability_zone == "eu-west-1a"
    assert sorted(client.lookups) == sorted([INSTANCE_ID_PATH, AVAILABILITY_ZONE_PATH])


@pytest.mark.asyncio
async def test_cached_within_ttl():
    clock = FakeClock()
    client = FakeMetadataClient()
    cache = MetadataCache(client, ttl=30.0, clock=clock)

    first = await cache.get_metadata()
    clock.advance(10)
    second = await cache.get_metadata()

    assert second is first
    assert second.fetched_at == first.fetched_at
    assert cache.refresh_count == 1
    assert len(client.lookups) == 2


@pytest.mark.asyncio
async def test_refreshed_after_ttl():
    clock = FakeClock()
    client = FakeMetadataClient()
    cache = MetadataCache(client, ttl=30.0, clock=clock)

    first = await cache.get_metadata()
    clock.advance(31)
    second = await cache.get_metadata()

    assert cache.refresh_count == 2
    assert second.fetched_at > first.fetched_at


@pytest.mark.asyncio
async def test_unknown_is_not_cached():
    clock = FakeClock()
    client = FakeMetadataClient(values={})
    cache = MetadataCache(client, ttl=30.0, clock=clock)

    first = await cache.get_metadata()
    assert first.instance_id == UNKNOWN
    assert first.availability_zone == UNKNOWN
    assert cache.is_fresh() is False

    client.values = {INSTANCE_ID_PATH: "i-abc", AVAILABILITY_ZONE_PATH: "us-east-1b"}
    second = await cache.get_metadata()

    assert cache.refresh_count == 2
    assert second.instance_id == "i-abc"
    assert second.fetched_at >= first.fetched_at


@pytest.mark.asyncio
async def test_partial_result_keeps_known_value():
    client = FakeMetadataClient(values={INSTANCE_ID_PATH: "i-abc"})
    cache = MetadataCache(client, clock=FakeClock())

    meta = await cache.get_metadata()

    assert meta.instance_id == "i-abc"
    assert meta.availability_zone == UNKNOWN


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_refresh():
    client = FakeMetadataClient(delay=0.05)
    cache = MetadataCache(client, clock=FakeClock())

    results = await asyncio.gather(*(cache.get_metadata() for _ in range(5)))

    assert cache.refresh_count == 1
    assert len(client.lookups) == 2
    assert all(r is results[0] for r in results)


@pytest.mark.asyncio
async def test_snapshot_never_fetches():
    client = FakeMetadataClient()
    cache = MetadataCache(client, clock=FakeClock())

    assert cache.snapshot.instance_id == UNKNOWN
    assert client.lookups == []


@pytest.mark.asyncio
async def test_aclose_closes_client():
    client = FakeMetadataClient()
    cache = MetadataCache(client)

    await cache.aclose()

    assert client.closed is True


# ----------------------------------------------------------------------
# MetadataClient (httpx.MockTransport)
# ----------------------------------------------------------------------
@pytest.mark.asyncio
async def test_client_joins_path_and_strips_body():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, text="i-0abc\n")

    client = MetadataClient(BASE + "/", timeout=1.0, transport=httpx.MockTransport(handler))
    try:
        assert await client.lookup(INSTANCE_ID_PATH) == "i-0abc"
        assert await client.lookup(AVAILABILITY_ZONE_PATH) == "i-0abc"
    finally:
        await client.aclose()

    assert seen == [
        "/latest/meta-data/instance-id",
        "/latest/meta-data/placement/availability-zone",
    ]


@pytest.mark.asyncio
async def test_client_returns_none_on_http_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(404, text="not found"))
    client = MetadataClient(BASE, transport=transport)
    try:
        assert await client.lookup(INSTANCE_ID_PATH) is None
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_client_returns_none_on_empty_body():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="  "))
    client = MetadataClient(BASE, transport=transport)
    try:
        assert await client.lookup(INSTANCE_ID_PATH) is None
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_client_returns_none_on_connect_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = MetadataClient(BASE, transport=httpx.MockTransport(handler))
    try:
        assert await client.lookup(INSTANCE_ID_PATH) is None
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_client_lookup_is_bounded_by_timeout():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(2.0)
        return httpx.Response(200, text="too-late")

    client = MetadataClient(BASE, timeout=0.1, transport=httpx.MockTransport(handler))
    loop = asyncio.get_running_loop()
    try:
        started = loop.time()
        assert await client.lookup(INSTANCE_ID_PATH) is None
        assert loop.time() - started < 1.0
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_cache_over_failing_endpoint_yields_sentinels():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    cache = MetadataCache(MetadataClient(BASE, transport=transport))

    meta = await cache.get_metadata()
    await cache.aclose()

    assert meta.instance_id == UNKNOWN
    assert meta.availability_zone == UNKNOWN
    assert meta.fetched_at > 0
