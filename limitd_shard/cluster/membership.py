"""
Cluster Membership Module

A MembershipSet is an immutable snapshot of the nodes the client routes
across: canonical addresses paired index-for-index with their clients.
It is never mutated; a topology change builds a new set and swaps the
reference, so a reader always sees one complete snapshot.

MembershipResolver keeps the set current in autodiscover mode. Every
tick it resolves the logical address, canonicalizes the answer and
reports a change only when the canonical list differs from the last one
observed. Failed lookups leave the current topology untouched.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, Optional, Sequence, Tuple

from ..network.resolver import DiscoveryError, Resolver
from .config import AutodiscoverConfig, canonicalize_hosts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipSet:
    """Canonical node addresses and the clients connected to them."""

    addresses: Tuple[str, ...] = ()
    clients: Tuple[Any, ...] = ()

    def __post_init__(self):
        if len(self.addresses) != len(self.clients):
            raise ValueError(
                f"membership has {len(self.addresses)} addresses "
                f"but {len(self.clients)} clients"
            )

    @classmethod
    def empty(cls) -> "MembershipSet":
        return cls()

    @classmethod
    def build(cls, addresses: Sequence[str], factory: Callable[[str], Any]) -> "MembershipSet":
        """Create one client per address, preserving address order."""
        addresses = tuple(addresses)
        return cls(addresses=addresses, clients=tuple(factory(address) for address in addresses))

    @property
    def is_empty(self) -> bool:
        return not self.addresses

    def client_at(self, index: int) -> Any:
        return self.clients[index]

    def __len__(self) -> int:
        return len(self.addresses)

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(zip(self.addresses, self.clients))


class MembershipResolver:
    """
    Periodically resolves the node list for autodiscover mode.

    The loop runs on a fixed interval whatever the outcome of each pass,
    until stop() is called.

    Attributes:
        resolver: Resolver queried every tick
        autodiscover: Logical address and record type to resolve
        port: Default port applied to resolved hosts
        interval: Seconds between passes
    """

    def __init__(
            self,
            resolver: Resolver,
            autodiscover: AutodiscoverConfig,
            port: int,
            interval: float,
            on_change: Callable[[Tuple[str, ...]], Awaitable[None]],
            on_error: Callable[[DiscoveryError], None],
    ):
        self.resolver = resolver
        self.autodiscover = autodiscover
        self.port = port
        self.interval = interval
        self._on_change = on_change
        self._on_error = on_error

        self._last_observed: Tuple[str, ...] = ()
        self._task: Optional[asyncio.Task] = None

    @property
    def last_observed(self) -> Tuple[str, ...]:
        """Last canonical address list seen, used to suppress churn."""
        return self._last_observed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self) -> bool:
        """
        Run one discovery pass.

        Returns:
            True if the membership changed, False otherwise
        """
        address = self.autodiscover.address
        record_type = self.autodiscover.record_type

        try:
            hosts = await self.resolver.resolve(address, record_type)
        except Exception as exc:
            if isinstance(exc, DiscoveryError):
                error = exc
            else:
                error = DiscoveryError(address, str(exc))
                error.__cause__ = exc
            logger.warning(f"Discovery of {address} failed: {error}")
            self._on_error(error)
            return False

        addresses = canonicalize_hosts(hosts, self.port)
        if addresses == self._last_observed:
            logger.debug(f"Membership for {address} unchanged ({len(addresses)} nodes)")
            return False

        logger.info(f"Membership for {address} changed: {list(self._last_observed)} -> {list(addresses)}")
        await self._on_change(addresses)
        self._last_observed = addresses
        return True

    async def start(self) -> None:
        """
        Run the first pass, then keep refreshing in the background.

        A failed first pass is logged like any other tick; the loop is
        scheduled either way.
        """
        if self.running:
            return
        await self._tick()
        self._task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        """Cancel the pending refresh, if any."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _tick(self) -> None:
        try:
            await self.refresh()
        except Exception:
            # Keep the schedule even if rebuilding the membership failed
            logger.exception(f"Membership refresh for {self.autodiscover.address} failed")

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self._tick()
