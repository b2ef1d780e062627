"""
limitd-shard: Client-Side Sharding for limitd

Routes per-key quota operations to the limitd node that owns the key,
keeps the node list current through DNS autodiscovery, and merges
cluster-wide status queries into a single result.
"""

from .cluster.aggregator import FanOutError
from .cluster.config import ConfigurationError
from .cluster.events import EventEmitter
from .cluster.router import NoNodesAvailableError
from .network.resolver import DiscoveryError, DNSResolver, Resolver
from .protocol.node_client import NodeClient
from .protocol.results import AggregateStatus, NodeOutcome, StatusResponse
from .shard_client import ShardClient

__version__ = "1.0.0"

__all__ = [
    "ShardClient",
    "NodeClient",
    "EventEmitter",
    "Resolver",
    "DNSResolver",
    "AggregateStatus",
    "NodeOutcome",
    "StatusResponse",
    "ConfigurationError",
    "DiscoveryError",
    "FanOutError",
    "NoNodesAvailableError",
]
