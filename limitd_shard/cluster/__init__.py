"""
Cluster module for limitd-shard.

This module provides the sharding core:
- Shard configuration and key-to-node hashing
- Membership snapshots and DNS-driven refresh
- Request routing to the owning node
- Event multiplexing across node clients
- Cluster-wide status/ping aggregation
"""

from .aggregator import FanOutError, StatusAggregator
from .config import (
    AutodiscoverConfig,
    ConfigurationError,
    ShardConfig,
    canonicalize_hosts,
    get_node_index,
    normalize_address,
)
from .events import NODE_EVENTS, EventEmitter, EventMultiplexer
from .membership import MembershipResolver, MembershipSet
from .router import QUOTA_OPERATIONS, NoNodesAvailableError, ShardRouter

__all__ = [
    'AutodiscoverConfig',
    'ConfigurationError',
    'ShardConfig',
    'canonicalize_hosts',
    'get_node_index',
    'normalize_address',
    'NODE_EVENTS',
    'EventEmitter',
    'EventMultiplexer',
    'MembershipResolver',
    'MembershipSet',
    'QUOTA_OPERATIONS',
    'NoNodesAvailableError',
    'ShardRouter',
    'FanOutError',
    'StatusAggregator',
]
