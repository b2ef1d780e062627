"""
Shard Client Module

ShardClient fronts a set of independent limitd nodes and behaves like a
single client:

- reset/put/take/wait go to the node owning "<category>:<key>"
- status/ping are sent to every node and merged
- connection events of every node are re-emitted on the shard client,
  with the originating node client appended to the payload

Usage (static hosts):
    shard = ShardClient(
        shard={"hosts": ["limitd-1", "limitd-2"]},
        client_factory=LimitdClient,
    )
    result = await shard.take("ip", "10.0.0.1", 1)

Usage (DNS autodiscovery):
    async with ShardClient(
        shard={"autodiscover": {"address": "limitd.internal", "type": "A"}},
        client_factory=LimitdClient,
    ) as shard:
        status = await shard.status("ip", "10.0.0.")
"""

import asyncio
import logging
from typing import Any, List, Optional, Set, Tuple

from .cluster.aggregator import StatusAggregator
from .cluster.config import ConfigurationError, ShardConfig
from .cluster.events import EventEmitter, EventMultiplexer
from .cluster.membership import MembershipResolver, MembershipSet
from .cluster.router import ShardRouter
from .config.settings import settings
from .network.resolver import DiscoveryError, DNSResolver, Resolver
from .protocol.node_client import NodeClientFactory
from .protocol.results import AggregateStatus, NodeOutcome

logger = logging.getLogger(__name__)


class ShardClient(EventEmitter):
    """
    Client-side sharding over a set of limitd nodes.

    Events:
        error(err, client): a node client reported a connection error
        error(err): an autodiscovery pass failed (DiscoveryError)
        breaker_error(err, client), connect(client), reconnect(client),
        close(client), ready(client), response(response, client):
            forwarded from node clients that emit events
        membership_changed(addresses): the node set was replaced

    Attributes:
        config: The validated ShardConfig
        client_options: Options passed verbatim to every node client
        disconnect_timeout: Seconds allowed for each node client disconnect
    """

    def __init__(
            self,
            shard: dict = None,
            port: int = None,
            client_factory: NodeClientFactory = None,
            resolver: Resolver = None,
            refresh_interval: float = None,
            disconnect_timeout: float = None,
            **client_options: Any,
    ):
        """
        Initialize the shard client.

        Args:
            shard: {"hosts": [...]} or {"autodiscover": {"address": ..., "type": ...}}
            port: Default node port (default from settings)
            client_factory: Called as client_factory(host=address, **client_options)
                for every node
            resolver: Resolver for autodiscover mode (default DNSResolver)
            refresh_interval: Seconds between discovery passes
            disconnect_timeout: Seconds to wait for a node client to disconnect
            **client_options: Passed through to every node client

        Raises:
            ConfigurationError: If the shard configuration is invalid
        """
        super().__init__()

        self.config = ShardConfig.from_options(shard, port=port, refresh_interval=refresh_interval)
        if client_factory is None:
            raise ConfigurationError("client_factory is required")

        self.client_options = client_options
        self.disconnect_timeout = (
            disconnect_timeout if disconnect_timeout is not None else settings.DISCONNECT_TIMEOUT
        )
        self._client_factory = client_factory
        self._multiplexer = EventMultiplexer(self)
        self._aggregator = StatusAggregator()
        self._router = ShardRouter(lambda: self._membership)
        self._discovery: Optional[MembershipResolver] = None
        self._pending_disconnects: Set[asyncio.Task] = set()

        if self.config.is_static:
            self._membership = MembershipSet.build(self.config.static_addresses(), self._create_client)
            logger.info(f"Shard client using {len(self._membership)} static nodes")
        else:
            self._membership = MembershipSet.empty()
            self._discovery = MembershipResolver(
                resolver=resolver if resolver is not None else DNSResolver(),
                autodiscover=self.config.autodiscover,
                port=self.config.port,
                interval=self.config.refresh_interval,
                on_change=self._replace_membership,
                on_error=self._on_discovery_error,
            )

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    @property
    def membership(self) -> MembershipSet:
        """The current membership snapshot."""
        return self._membership

    @property
    def clients(self) -> Tuple[Any, ...]:
        return self._membership.clients

    @property
    def addresses(self) -> Tuple[str, ...]:
        return self._membership.addresses

    @property
    def discovery(self) -> Optional[MembershipResolver]:
        """The autodiscovery loop (None in static mode)."""
        return self._discovery

    def node_for(self, category: str, key: str) -> str:
        """Address of the node that currently owns (category, key)."""
        index, _ = self._router.select(category, key)
        return self._membership.addresses[index]

    def _create_client(self, address: str) -> Any:
        client = self._client_factory(host=address, **self.client_options)
        self._multiplexer.wire(client)
        return client

    async def _replace_membership(self, addresses: Tuple[str, ...]) -> None:
        """
        Swap in a new membership and disconnect the superseded clients.

        The old clients are disconnected in a background task, so a node
        that never finishes disconnecting cannot hold up discovery.
        """
        previous = self._membership
        self._membership = MembershipSet.build(addresses, self._create_client)
        logger.info(f"Shard membership replaced: {len(previous)} -> {len(self._membership)} nodes")
        self.emit("membership_changed", self._membership.addresses)

        if previous.is_empty:
            return
        task = asyncio.create_task(self._disconnect(previous))
        self._pending_disconnects.add(task)
        task.add_done_callback(self._pending_disconnects.discard)

    async def _disconnect(self, membership: MembershipSet) -> None:
        results = await asyncio.gather(
            *(asyncio.wait_for(client.disconnect(), timeout=self.disconnect_timeout)
              for client in membership.clients),
            return_exceptions=True,
        )
        for (address, client), result in zip(membership, results):
            if isinstance(result, asyncio.TimeoutError):
                logger.warning(f"Timed out disconnecting from {address} after {self.disconnect_timeout}s")
            elif isinstance(result, Exception):
                logger.error(f"Failed to disconnect from {address}: {result}")
            self._multiplexer.unwire(client)

    async def _drain_disconnects(self) -> None:
        """Wait for superseded clients still being disconnected."""
        if self._pending_disconnects:
            await asyncio.gather(*list(self._pending_disconnects))

    def _on_discovery_error(self, error: DiscoveryError) -> None:
        self.emit("error", error)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Run the first discovery pass and start the refresh loop.

        Does nothing in static mode.
        """
        if self._discovery is not None:
            await self._discovery.start()

    async def stop(self) -> None:
        """Stop refreshing the membership. Node connections stay open."""
        if self._discovery is not None:
            await self._discovery.stop()

    async def close(self) -> None:
        """Stop discovery and disconnect from every node, including superseded ones."""
        await self.stop()
        previous, self._membership = self._membership, MembershipSet.empty()
        await self._disconnect(previous)
        await self._drain_disconnects()

    async def __aenter__(self) -> "ShardClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Keyed operations
    # ------------------------------------------------------------------

    def reset(self, category: str, key: str, *args, **kwargs):
        """Reset a bucket on the node that owns it."""
        return self._router.dispatch("reset", category, key, *args, **kwargs)

    def put(self, category: str, key: str, *args, **kwargs):
        """Put tokens into a bucket on the node that owns it."""
        return self._router.dispatch("put", category, key, *args, **kwargs)

    def take(self, category: str, key: str, *args, **kwargs):
        """Take tokens from a bucket on the node that owns it."""
        return self._router.dispatch("take", category, key, *args, **kwargs)

    def wait(self, category: str, key: str, *args, **kwargs):
        """Wait for tokens from a bucket on the node that owns it."""
        return self._router.dispatch("wait", category, key, *args, **kwargs)

    # ------------------------------------------------------------------
    # Cluster-wide operations
    # ------------------------------------------------------------------

    async def status(self, category: str, prefix: str) -> AggregateStatus:
        """Status of a category across every node."""
        return await self._aggregator.status(self._membership, category, prefix)

    async def ping(self) -> List[NodeOutcome]:
        """Ping every node; outcomes are in membership order."""
        return await self._aggregator.ping(self._membership)

    def __repr__(self) -> str:
        return f"ShardClient(config={self.config!r}, nodes={list(self._membership.addresses)})"
