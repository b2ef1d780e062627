"""
Node Response and Aggregate Result Definitions

Data structures exchanged between the shard client and node clients,
and the merged results of cluster-wide fan-out queries.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class StatusResponse:
    """
    Status reply from a single node.

    Attributes:
        items: Bucket status entries reported by the node
    """
    items: List[Any] = field(default_factory=list)


@dataclass
class AggregateStatus:
    """
    Merged status of every node in the membership.

    Attributes:
        items: Items from successful nodes, concatenated in membership order
        errors: One exception per node whose query failed, in membership order
    """
    items: List[Any] = field(default_factory=list)
    errors: List[BaseException] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every node answered."""
        return not self.errors


@dataclass
class NodeOutcome:
    """
    Outcome of a fan-out call against one node.

    Attributes:
        address: Address of the node
        response: The node's reply (None on failure)
        error: The exception raised by the node, if any
    """
    address: str
    response: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
