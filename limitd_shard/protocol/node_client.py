"""
Node Client Interface

The shard client never speaks the limitd protocol itself. Every node is
reached through a NodeClient supplied by the caller, which owns the
connection, retries and circuit breaking for that node.

A NodeClient that also subclasses EventEmitter has its connection
events (error, connect, close, ...) re-emitted by the shard client.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable

from .results import StatusResponse


class NodeClient(ABC):
    """Connection to a single limitd node."""

    host: str

    @abstractmethod
    async def reset(self, category: str, key: str, *args, **kwargs) -> Any:
        """Reset a bucket to its full size."""

    @abstractmethod
    async def put(self, category: str, key: str, *args, **kwargs) -> Any:
        """Put tokens back into a bucket."""

    @abstractmethod
    async def take(self, category: str, key: str, *args, **kwargs) -> Any:
        """Take tokens from a bucket, failing fast if not enough remain."""

    @abstractmethod
    async def wait(self, category: str, key: str, *args, **kwargs) -> Any:
        """Take tokens from a bucket, waiting until enough are available."""

    @abstractmethod
    async def status(self, category: str, prefix: str) -> StatusResponse:
        """Report every bucket of a category whose key starts with prefix."""

    @abstractmethod
    async def ping(self) -> Any:
        """Check the node is alive."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection to the node."""


# Called as factory(host=<node address>, **passthrough_options)
NodeClientFactory = Callable[..., NodeClient]
