#!/usr/bin/env python3
"""
limitd-shard Command Line Tool

Inspect how keys are placed on a limitd cluster without connecting to it.

Usage:
    limitd-shard route ip 10.0.0.1 --hosts host-1 host-2
    limitd-shard route ip 10.0.0.1 --hosts host-1 host-2 --port 9000
    limitd-shard discover limitd.service.internal
    limitd-shard discover _limitd._tcp.internal --type SRV
    limitd-shard --debug discover limitd.service.internal

Environment Variables:
    LIMITD_SHARD_PORT       - Default node port
    LIMITD_SHARD_DNS_TIMEOUT - DNS query timeout in seconds
    LIMITD_SHARD_DEBUG      - Enable debug mode (true/false)
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .cluster.config import ConfigurationError, ShardConfig, canonicalize_hosts, get_node_index
from .config.settings import settings
from .network.resolver import DiscoveryError, DNSResolver, Resolver

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DISCOVERY_FAILED = 1
EXIT_CONFIGURATION_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="limitd-shard",
        description="limitd-shard: inspect key placement across limitd nodes",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    route = subparsers.add_parser(
        "route",
        help="Show which node owns a key",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    route.add_argument("category", help="Bucket type, e.g. ip")
    route.add_argument("key", help="Bucket key, e.g. 10.0.0.1")
    route.add_argument(
        "--hosts",
        nargs="+",
        required=True,
        help="Node hosts (bare, host:port, or limitd://host:port)",
    )
    route.add_argument(
        "--port",
        type=int,
        default=settings.DEFAULT_PORT,
        help="Default node port",
    )

    discover = subparsers.add_parser(
        "discover",
        help="Resolve a DNS name into the canonical node list",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    discover.add_argument("address", help="DNS name to resolve")
    discover.add_argument(
        "--type",
        dest="record_type",
        default=settings.DEFAULT_RECORD_TYPE,
        help="DNS record type (A, AAAA or SRV)",
    )
    discover.add_argument(
        "--port",
        type=int,
        default=settings.DEFAULT_PORT,
        help="Default node port",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )


def run_route(args: argparse.Namespace) -> int:
    """Print the node owning args.category:args.key."""
    config = ShardConfig.from_options({"hosts": args.hosts}, port=args.port)
    addresses = config.static_addresses()
    index = get_node_index(args.category, args.key, len(addresses))

    print(f"{args.category}:{args.key} -> {addresses[index]} (node {index} of {len(addresses)})")
    return EXIT_OK


async def run_discover(args: argparse.Namespace, resolver: Resolver = None) -> int:
    """Resolve args.address once and print the canonical membership."""
    config = ShardConfig.from_options(
        {"autodiscover": {"address": args.address, "type": args.record_type}},
        port=args.port,
    )
    resolver = resolver if resolver is not None else DNSResolver()

    try:
        hosts = await resolver.resolve(config.autodiscover.address, config.autodiscover.record_type)
    except DiscoveryError as exc:
        logger.error(str(exc))
        return EXIT_DISCOVERY_FAILED

    for index, address in enumerate(canonicalize_hosts(hosts, config.port)):
        print(f"{index}\t{address}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line tool."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        if args.command == "route":
            return run_route(args)
        return asyncio.run(run_discover(args))
    except ConfigurationError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return EXIT_CONFIGURATION_ERROR


if __name__ == "__main__":
    sys.exit(main())
