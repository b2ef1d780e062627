"""Name resolution for limitd-shard autodiscovery."""

from .resolver import DiscoveryError, DNSResolver, Resolver

__all__ = ["DiscoveryError", "DNSResolver", "Resolver"]
