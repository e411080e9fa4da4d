"""
Instance metadata lookups with time-based caching.

The metadata endpoint is the source of truth; this module only keeps the
last answer around for a short TTL so probes and diagnostics do not hit it
on every request. Lookups never raise: a failed or slow lookup resolves to
the "unknown" sentinel, and a sentinel snapshot is never served from cache.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Callable, Optional, Protocol

import httpx

from health_sidecar.models.errors import MetadataLookupFailure
from health_sidecar.models.metadata import InstanceMetadata, UNKNOWN
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.METADATA)

INSTANCE_ID_PATH = "instance-id"
AVAILABILITY_ZONE_PATH = "placement/availability-zone"


class IMetadataClient(Protocol):
    """Anything that can resolve a metadata path to a string (or None)."""

    async def lookup(self, path: str) -> Optional[str]:
        ...

    async def aclose(self) -> None:
        ...


class MetadataClient:
    """
    HTTP client for the instance metadata endpoint.

    Each lookup is bounded by `timeout` seconds end to end. Failures are
    logged at debug level and returned as None.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            base_url: Metadata root, e.g. http://169.254.169.254/latest/meta-data
            timeout: Per-lookup timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url + "/",
            timeout=timeout,
            transport=transport,
        )

    async def lookup(self, path: str) -> Optional[str]:
        try:
            return await asyncio.wait_for(self._fetch(path), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.debug(f"Metadata lookup timed out: {path}", timeout=f"{self.timeout}s")
        except MetadataLookupFailure as e:
            log.debug(f"Metadata lookup failed: {e.path}", reason=e.reason)
        return None

    async def _fetch(self, path: str) -> str:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise MetadataLookupFailure(path, f"{type(e).__name__}: {e}") from e

        value = response.text.strip()
        if not value:
            raise MetadataLookupFailure(path, "empty response")
        return value

    async def aclose(self) -> None:
        await self._client.aclose()


class MetadataCache:
    """
    Single-slot cache for instance id + availability zone.

    get_metadata() serves the cached snapshot while it is younger than `ttl`
    and carries a real instance id. Otherwise both lookups run concurrently
    and a new snapshot replaces the old one. Callers arriving while a refresh
    is in flight await that refresh instead of starting another.

    Example:
        cache = MetadataCache(MetadataClient("http://169.254.169.254/latest/meta-data"))
        meta = await cache.get_metadata()
        meta.instance_id  # "i-0abc..." or "unknown"
    """

    def __init__(
        self,
        client: IMetadataClient,
        ttl: float = 30.0,
        clock: Callable[[], float] = time.time
    ):
        self._client = client
        self._ttl = ttl
        self._clock = clock
        self._snapshot = InstanceMetadata.empty()
        self._refresh_task: Optional[asyncio.Task] = None
        self.refresh_count = 0

    @property
    def snapshot(self) -> InstanceMetadata:
        """Current cached value, possibly stale; never performs I/O."""
        return self._snapshot

    def is_fresh(self) -> bool:
        age = self._clock() - self._snapshot.fetched_at
        return age < self._ttl and self._snapshot.is_known

    async def get_metadata(self) -> InstanceMetadata:
        if self.is_fresh():
            return self._snapshot

        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh(), name="MetadataRefresh")

        # shield: a cancelled request must not cancel the shared refresh
        return await asyncio.shield(self._refresh_task)

    async def _refresh(self) -> InstanceMetadata:
        self.refresh_count += 1
        instance_id, availability_zone = await asyncio.gather(
            self._client.lookup(INSTANCE_ID_PATH),
            self._client.lookup(AVAILABILITY_ZONE_PATH),
        )

        snapshot = InstanceMetadata(
            instance_id=instance_id or UNKNOWN,
            availability_zone=availability_zone or UNKNOWN,
            fetched_at=max(self._clock(), self._snapshot.fetched_at),
        )
        self._snapshot = snapshot

        if snapshot.is_known:
            log.debug("Metadata refreshed", instance_id=snapshot.instance_id, az=snapshot.availability_zone)
        else:
            log.warn("Metadata unavailable, using sentinel values")
        return snapshot

    async def aclose(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._refresh_task
        await self._client.aclose()
