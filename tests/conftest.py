"""
Pytest Configuration and Fixtures

This module provides fake node clients, a scripted resolver and shared
fixtures for all tests.
"""

import asyncio
from typing import AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio

from limitd_shard.cluster.events import EventEmitter
from limitd_shard.network.resolver import DiscoveryError, Resolver
from limitd_shard.protocol.node_client import NodeClient
from limitd_shard.protocol.results import StatusResponse
from limitd_shard.shard_client import ShardClient


# ============================================================================
# Fake Node Clients
# ============================================================================

class FakeNodeClient(NodeClient):
    """
    In-memory node client that records every call.

    Per-node behaviour is configured through class-level maps keyed by
    host, so tests can script a whole cluster before the shard client
    creates its node clients.
    """

    status_errors: Dict[str, Exception] = {}
    status_delays: Dict[str, float] = {}
    ping_delays: Dict[str, float] = {}

    def __init__(self, host: str, **options):
        self.host = host
        self.options = options
        self.calls: List[tuple] = []
        self.disconnected = False

    async def _record(self, operation: str, *args, **kwargs):
        self.calls.append((operation, args, kwargs))
        return {"host": self.host, "operation": operation, "args": args}

    async def reset(self, category, key, *args, **kwargs):
        return await self._record("reset", category, key, *args, **kwargs)

    async def put(self, category, key, *args, **kwargs):
        return await self._record("put", category, key, *args, **kwargs)

    async def take(self, category, key, *args, **kwargs):
        return await self._record("take", category, key, *args, **kwargs)

    async def wait(self, category, key, *args, **kwargs):
        return await self._record("wait", category, key, *args, **kwargs)

    async def status(self, category, prefix):
        self.calls.append(("status", (category, prefix), {}))
        await asyncio.sleep(self.status_delays.get(self.host, 0))
        if self.host in self.status_errors:
            raise self.status_errors[self.host]
        return StatusResponse(items=[
            f"item1-from-{self.host}",
            f"item2-from-{self.host}",
        ])

    async def ping(self):
        self.calls.append(("ping", (), {}))
        await asyncio.sleep(self.ping_delays.get(self.host, 0))
        return {"host": self.host}

    async def disconnect(self):
        self.disconnected = True


class EventfulNodeClient(FakeNodeClient, EventEmitter):
    """Fake node client that also emits connection events."""

    def __init__(self, host: str, **options):
        FakeNodeClient.__init__(self, host, **options)
        EventEmitter.__init__(self)

    async def disconnect(self):
        await super().disconnect()
        self.emit("close")


class HangingNodeClient(FakeNodeClient):
    """Fake node client whose disconnect never completes on its own."""

    async def disconnect(self):
        await asyncio.sleep(3600)
        self.disconnected = True


class ScriptedResolver(Resolver):
    """Resolver returning a scripted sequence of answers or errors."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.queries: List[tuple] = []

    async def resolve(self, address: str, record_type: str = "A") -> List[str]:
        self.queries.append((address, record_type))
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, Exception):
            raise answer
        return list(answer)


@pytest.fixture(autouse=True)
def reset_fake_behaviour():
    """Clear scripted per-host behaviour between tests."""
    FakeNodeClient.status_errors = {}
    FakeNodeClient.status_delays = {}
    FakeNodeClient.ping_delays = {}
    yield


# ============================================================================
# Shard Client Fixtures
# ============================================================================

@pytest.fixture
def two_node_shard() -> ShardClient:
    """Static shard over host-1 and host-2 (listed out of order)."""
    return ShardClient(
        shard={"hosts": ["host-2", "host-1"]},
        client_factory=FakeNodeClient,
    )


@pytest.fixture
def eventful_shard() -> ShardClient:
    """Static shard whose node clients emit events."""
    return ShardClient(
        shard={"hosts": ["host-1", "host-2"]},
        client_factory=EventfulNodeClient,
    )


@pytest.fixture
def resolver() -> ScriptedResolver:
    return ScriptedResolver(["host-b", "host-a"])


@pytest_asyncio.fixture
async def discovered_shard(resolver: ScriptedResolver) -> AsyncGenerator[ShardClient, None]:
    """
    Autodiscover shard after its first discovery pass.

    The refresh interval is long enough that tests drive further passes
    explicitly through `shard.discovery.refresh()`.
    """
    shard = ShardClient(
        shard={"autodiscover": {"address": "foo.bar.company.example.com"}},
        client_factory=EventfulNodeClient,
        resolver=resolver,
        refresh_interval=3600,
    )
    await shard.start()

    yield shard

    await shard.close()


def make_discovery_error(message: str = "SERVFAIL", address: Optional[str] = None) -> DiscoveryError:
    return DiscoveryError(address or "foo.bar.company.example.com", message)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
