"""
Status Aggregator Module

Fans a query out to every node concurrently and merges the answers.

Merge policy:
- A node that fails contributes one entry to `errors` and no items
- A node that succeeds contributes its items, in membership order
- Nothing is re-sorted or de-duplicated

Results are ordered by membership index, not by which node answered
first. Only a failure of the fan-out itself fails the whole call.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List

from ..protocol.results import AggregateStatus, NodeOutcome
from .membership import MembershipSet

logger = logging.getLogger(__name__)


class FanOutError(RuntimeError):
    """Raised when a cluster-wide query could not be dispatched."""


class StatusAggregator:
    """Cluster-wide status and ping queries."""

    async def status(self, membership: MembershipSet, category: str, prefix: str) -> AggregateStatus:
        """
        Query the status of a category on every node.

        Args:
            membership: Snapshot of the nodes to query
            category: Bucket type
            prefix: Key prefix to report on

        Returns:
            AggregateStatus with items in membership order and one error
            per failed node

        Raises:
            FanOutError: If the fan-out itself could not run
        """
        async def query(client: Any) -> List[Any]:
            response = await client.status(category, prefix)
            return list(response.items)

        outcomes = await self._run("status", membership, query)

        result = AggregateStatus()
        for outcome in outcomes:
            if outcome.ok:
                result.items.extend(outcome.response)
            else:
                result.errors.append(outcome.error)

        if result.errors:
            logger.warning(f"Status of {category}:{prefix}* failed on "
                           f"{len(result.errors)}/{len(membership)} nodes")
        return result

    async def ping(self, membership: MembershipSet) -> List[NodeOutcome]:
        """
        Ping every node.

        Returns:
            One NodeOutcome per node, in membership order
        """
        async def query(client: Any) -> Any:
            return await client.ping()

        return await self._run("ping", membership, query)

    async def _run(
            self,
            name: str,
            membership: MembershipSet,
            query: Callable[[Any], Awaitable[Any]],
    ) -> List[NodeOutcome]:
        try:
            return await self._fan_out(membership, query)
        except Exception as exc:
            logger.error(f"{name} fan-out failed: {exc}")
            raise FanOutError(f"{name} fan-out failed: {exc}") from exc

    async def _fan_out(
            self,
            membership: MembershipSet,
            query: Callable[[Any], Awaitable[Any]],
    ) -> List[NodeOutcome]:
        async def collect(address: str, client: Any) -> NodeOutcome:
            try:
                return NodeOutcome(address=address, response=await query(client))
            except Exception as exc:
                logger.debug(f"Node {address} failed: {exc}")
                return NodeOutcome(address=address, error=exc)

        # gather() keeps argument order regardless of completion order
        return list(await asyncio.gather(
            *(collect(address, client) for address, client in membership)
        ))
