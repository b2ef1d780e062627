"""
Shard Configuration Module

Validates the shard configuration and defines how keys map to nodes.

Two mutually exclusive modes are supported:
- Static: an explicit list of hosts, fixed for the life of the client
- Autodiscover: a DNS name queried periodically for the current hosts

Every host list is canonicalized before use: raw entries are sorted
lexicographically and then expanded into full node addresses, e.g.

    ["host-2", "host-1"] -> ("limitd://host-1:9231", "limitd://host-2:9231")

so routing indices are reproducible whatever order discovery returns.
"""

import ipaddress
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import mmh3

from ..config.settings import settings


class ConfigurationError(ValueError):
    """Raised when the shard configuration is absent or ambiguous."""


def _is_ipv6(host: str) -> bool:
    try:
        return ipaddress.ip_address(host).version == 6
    except ValueError:
        return False


def normalize_address(host: str, port: int = None, scheme: str = None) -> str:
    """
    Convert a host string into a full node address.

    Args:
        host: Bare hostname/IP, "host:port", or a full "scheme://host:port"
        port: Default port applied when the host carries none
        scheme: Address scheme (default from settings)

    Returns:
        Address in "scheme://host:port" form
    """
    port = port if port is not None else settings.DEFAULT_PORT
    scheme = scheme or settings.SCHEME

    if "://" in host:
        return host
    if _is_ipv6(host):
        return f"{scheme}://[{host}]:{port}"
    if host.startswith("[") or host.count(":") == 1:
        # Already "host:port" or "[v6]:port"
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def canonicalize_hosts(hosts: Iterable[str], port: int = None) -> Tuple[str, ...]:
    """Sort raw hosts lexicographically and expand each into a full address."""
    return tuple(normalize_address(host, port) for host in sorted(hosts))


def routing_key(category: str, key: str) -> str:
    """Build the string hashed to pick a node."""
    return f"{category}:{key}"


def hash_routing_key(value: str) -> int:
    """
    Hash a routing key into an unsigned 32-bit integer.

    MurmurHash3 (x86, 32-bit, seed 0) over the UTF-8 bytes of the key.
    For ASCII keys this matches the placement used by the JavaScript
    limitd shard client. Keys with non-ASCII characters may land on a
    different node, since that client hashes only the low byte of each
    UTF-16 code unit.
    """
    return mmh3.hash(value, 0, signed=False)


def get_node_index(category: str, key: str, node_count: int) -> int:
    """
    Calculate which node owns a (category, key) pair.

    Args:
        category: Bucket type label (e.g. "ip")
        key: Application key within the category
        node_count: Number of nodes in the current membership

    Returns:
        Index into the canonical membership (0 .. node_count - 1)
    """
    if node_count <= 0:
        raise ValueError("node_count must be positive")
    return hash_routing_key(routing_key(category, key)) % node_count


@dataclass(frozen=True)
class AutodiscoverConfig:
    """Logical DNS name and record type queried for the node list."""

    address: str
    record_type: str = settings.DEFAULT_RECORD_TYPE


@dataclass(frozen=True)
class ShardConfig:
    """
    Validated shard configuration.

    Exactly one of `hosts` and `autodiscover` is set.
    """

    hosts: Optional[Tuple[str, ...]] = None
    autodiscover: Optional[AutodiscoverConfig] = None
    port: int = settings.DEFAULT_PORT
    refresh_interval: float = settings.REFRESH_INTERVAL

    @classmethod
    def from_options(
            cls,
            shard,
            port: int = None,
            refresh_interval: float = None,
    ) -> "ShardConfig":
        """
        Build a ShardConfig from the raw `shard` option.

        Args:
            shard: Mapping with either "hosts" (list of host strings) or
                "autodiscover" ({"address": str, "type": str})
            port: Default node port
            refresh_interval: Seconds between discovery passes

        Raises:
            ConfigurationError: If the configuration is missing or invalid
        """
        if not isinstance(shard, Mapping):
            raise ConfigurationError("shard is required")

        port = port if port is not None else settings.DEFAULT_PORT
        if refresh_interval is None:
            refresh_interval = settings.REFRESH_INTERVAL
        if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
            raise ConfigurationError(f"invalid port: {port!r}")
        if (isinstance(refresh_interval, bool)
                or not isinstance(refresh_interval, (int, float))
                or refresh_interval <= 0):
            raise ConfigurationError(f"invalid refresh interval: {refresh_interval!r}")

        hosts = shard.get("hosts")
        autodiscover = shard.get("autodiscover")

        if hosts is not None and autodiscover is not None:
            raise ConfigurationError("unsupported shard configuration")

        if isinstance(hosts, (list, tuple)):
            if not all(isinstance(host, str) and host for host in hosts):
                raise ConfigurationError("shard hosts must be non-empty strings")
            return cls(hosts=tuple(hosts), port=port, refresh_interval=refresh_interval)

        if isinstance(autodiscover, Mapping):
            address = autodiscover.get("address")
            if not isinstance(address, str) or not address:
                raise ConfigurationError("unsupported shard configuration")
            record_type = autodiscover.get("type")
            if record_type is None:
                record_type = settings.DEFAULT_RECORD_TYPE
            if not isinstance(record_type, str) or not record_type:
                raise ConfigurationError(f"invalid record type: {record_type!r}")
            return cls(
                autodiscover=AutodiscoverConfig(address=address, record_type=record_type.upper()),
                port=port,
                refresh_interval=refresh_interval,
            )

        raise ConfigurationError("unsupported shard configuration")

    @property
    def is_static(self) -> bool:
        return self.hosts is not None

    def static_addresses(self) -> Tuple[str, ...]:
        """Canonical node addresses for static mode."""
        if not self.is_static:
            raise ConfigurationError("shard is configured for autodiscovery")
        return canonicalize_hosts(self.hosts, self.port)

    def __repr__(self) -> str:
        if self.is_static:
            return f"ShardConfig(hosts={list(self.hosts)}, port={self.port})"
        return (f"ShardConfig(autodiscover={self.autodiscover.address!r}, "
                f"type={self.autodiscover.record_type}, port={self.port})")
