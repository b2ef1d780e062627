"""
Async DNS Resolver for Node Discovery

Looks up the concrete addresses behind the logical name used in
autodiscover mode. A, AAAA and SRV records are supported; SRV records
yield "host:port" so the port advertised by DNS wins over the default.

Usage:
    resolver = DNSResolver()
    addresses = await resolver.resolve("limitd.service.consul", "A")
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import aiodns

from ..config.settings import settings

logger = logging.getLogger(__name__)

SUPPORTED_RECORD_TYPES = ("A", "AAAA", "SRV")


class DiscoveryError(Exception):
    """Raised when the node list cannot be resolved."""

    def __init__(self, address: str, message: str):
        self.address = address
        super().__init__(f"Discovery failed for '{address}': {message}")


class Resolver(ABC):
    """Source of the concrete addresses behind a logical name."""

    @abstractmethod
    async def resolve(self, address: str, record_type: str = "A") -> List[str]:
        """
        Resolve a logical address.

        Returns:
            Unordered list of concrete host strings

        Raises:
            DiscoveryError: If resolution fails
        """


class DNSResolver(Resolver):
    """Resolver backed by aiodns (c-ares)."""

    def __init__(self, timeout: float = None, nameservers: Optional[List[str]] = None):
        self.timeout = timeout if timeout is not None else settings.DNS_TIMEOUT
        self.nameservers = nameservers
        # aiodns binds to the running loop, so it is created on first use
        self._resolver: Optional[aiodns.DNSResolver] = None

    async def resolve(self, address: str, record_type: str = "A") -> List[str]:
        record_type = record_type.upper()
        if record_type not in SUPPORTED_RECORD_TYPES:
            raise DiscoveryError(address, f"unsupported record type {record_type}")

        if self._resolver is None:
            self._resolver = aiodns.DNSResolver(nameservers=self.nameservers)

        try:
            records = await asyncio.wait_for(
                self._resolver.query(address, record_type),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise DiscoveryError(address, f"{record_type} query timed out after {self.timeout}s")
        except aiodns.error.DNSError as exc:
            raise DiscoveryError(address, f"{record_type} query failed: {exc}") from exc

        if record_type == "SRV":
            hosts = [f"{record.host}:{record.port}" for record in records]
        else:
            hosts = [record.host for record in records]

        logger.debug(f"Resolved {address} ({record_type}) to {hosts}")
        return hosts
