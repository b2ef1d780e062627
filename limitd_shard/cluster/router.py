"""
Shard Router Module

Sends each quota operation to the node that owns its key.

The owner is hash("<category>:<key>") mod N over the canonical membership,
read at call time. The router never retries on another node and never
looks at node health: the selected client's result, or its exception,
reaches the caller untouched.
"""

import logging
from typing import Any, Callable, Tuple

from .config import get_node_index
from .membership import MembershipSet

logger = logging.getLogger(__name__)

# Operations dispatched to a single node by key
QUOTA_OPERATIONS = ("reset", "put", "take", "wait")


class NoNodesAvailableError(RuntimeError):
    """Raised when a key is routed while the membership is empty."""


class ShardRouter:
    """
    Routes keyed operations to the owning node.

    Args:
        membership: Callable returning the current MembershipSet. It is
            called once per operation, so a topology swap is picked up by
            the next call while calls already dispatched keep their node.
    """

    def __init__(self, membership: Callable[[], MembershipSet]):
        self._membership = membership

    def select(self, category: str, key: str) -> Tuple[int, Any]:
        """
        Pick the node owning (category, key).

        Returns:
            Tuple of (index, client)

        Raises:
            NoNodesAvailableError: If there are no nodes to route to
        """
        membership = self._membership()
        if membership.is_empty:
            raise NoNodesAvailableError(f"no nodes available to route {category}:{key}")

        index = get_node_index(category, key, len(membership))
        return index, membership.client_at(index)

    def dispatch(self, operation: str, category: str, key: str, *args, **kwargs) -> Any:
        """
        Forward a quota operation to the owning node.

        Args:
            operation: One of QUOTA_OPERATIONS
            category: Bucket type
            key: Bucket key
            *args, **kwargs: Passed to the node client unchanged

        Returns:
            Whatever the node client returns (normally an awaitable)
        """
        if operation not in QUOTA_OPERATIONS:
            raise ValueError(f"unknown quota operation: {operation}")

        index, client = self.select(category, key)
        logger.debug(f"Routing {operation.upper()} {category}:{key} to node {index}")
        return getattr(client, operation)(category, key, *args, **kwargs)
