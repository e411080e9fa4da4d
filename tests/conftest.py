"""
Shared fakes and fixtures.

FakeServer stands in for APIServerWrapper (IDrainableServer) so the shutdown
sequence can be driven without sockets; FakeMetadataClient stands in for
the HTTP metadata client.
"""

import asyncio
import socket
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from health_sidecar.lifecycle.lifecycle_state import LifecycleState
from health_sidecar.lifecycle.shutdown_sequencer import ShutdownSequencer
from health_sidecar.models.config import SidecarConfig, ShutdownConfig
from health_sidecar.models.enums import ExitCode
from health_sidecar.services.metadata_service import (
    MetadataCache,
    INSTANCE_ID_PATH,
    AVAILABILITY_ZONE_PATH,
)
from health_sidecar.services.service_container import ServiceContainer


class FakeServer:
    """Records calls; wait_drained() blocks until `drained` is set."""

    def __init__(self, close_error: Optional[Exception] = None):
        self.close_error = close_error
        self.close_calls = 0
        self.events: List[str] = []
        self.drained = asyncio.Event()

    def close_listeners(self) -> None:
        self.close_calls += 1
        self.events.append("close_listeners")
        if self.close_error is not None:
            raise self.close_error

    async def wait_drained(self) -> None:
        self.events.append("wait_drained")
        await self.drained.wait()


class FakeMetadataClient:
    """Serves canned values per path and counts lookups."""

    def __init__(self, values: Optional[Dict[str, Optional[str]]] = None, delay: float = 0.0):
        self.values = values if values is not None else {
            INSTANCE_ID_PATH: "i-0123456789abcdef0",
            AVAILABILITY_ZONE_PATH: "eu-west-1a",
        }
        self.delay = delay
        self.lookups: List[str] = []
        self.closed = False

    async def lookup(self, path: str) -> Optional[str]:
        self.lookups.append(path)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.values.get(path)

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ExitRecorder:
    """exit_action stand-in: remembers every code it was called with."""

    def __init__(self):
        self.codes: List[ExitCode] = []

    def __call__(self, code: ExitCode) -> None:
        self.codes.append(code)


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def build_services(
    sim_key: str = "",
    shutdown: Optional[ShutdownConfig] = None,
    server: Optional[FakeServer] = None,
    metadata_client: Optional[FakeMetadataClient] = None,
) -> ServiceContainer:
    config = SidecarConfig(sim_key=sim_key, shutdown=shutdown or ShutdownConfig())
    metadata = MetadataCache(metadata_client or FakeMetadataClient(), ttl=config.metadata.ttl)
    services = ServiceContainer.build(config, metadata)
    if server is not None:
        services.sequencer.attach_server(server)
    return services


@pytest.fixture
def state():
    return LifecycleState()


@pytest.fixture
def exit_recorder():
    return ExitRecorder()


@pytest_asyncio.fixture
async def fake_server():
    return FakeServer()


@pytest_asyncio.fixture
async def sequencer(state, fake_server, exit_recorder):
    seq = ShutdownSequencer(state, fake_server, drain_timeout=0.5, exit_action=exit_recorder)
    yield seq
    seq.cancel()
