"""Node client interface and result types for limitd-shard."""

from .node_client import NodeClient, NodeClientFactory
from .results import AggregateStatus, NodeOutcome, StatusResponse

__all__ = [
    "NodeClient",
    "NodeClientFactory",
    "AggregateStatus",
    "NodeOutcome",
    "StatusResponse",
]
