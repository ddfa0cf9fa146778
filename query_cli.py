#!/usr/bin/env python3
"""CLI tool for querying the local UPnP gateway"""

import argparse
import asyncio
import json
import logging
import os
import sys

from upnp_wan_exporter.config import Config, CONFIG_PATH_ENV, get_config, setup_logging
from upnp_wan_exporter.main import render_stats_text
from upnp_wan_exporter.upnp import UpnpClient, UpnpError

logger = logging.getLogger(__name__)


def _make_client(config: Config) -> UpnpClient:
    return UpnpClient(
        discovery_timeout=config.upnp.discovery_timeout,
        request_timeout=config.upnp.request_timeout,
    )


async def _discover(config: Config):
    async with _make_client(config) as client:
        await client.discover_device()
        return client.device


async def _collect(config: Config):
    async with _make_client(config) as client:
        return await client.collect(deadline=config.upnp.scrape_timeout or None)


def run_discover(args, config: Config):
    """Discover the gateway and print its service URLs"""
    try:
        device = asyncio.run(_discover(config))
    except UpnpError as e:
        logger.error(f"Discovery failed: {e}")
        sys.exit(1)

    if device is None:
        print("Gateway responded without a LOCATION header")
        sys.exit(1)

    print("\n" + "=" * 60)
    print(f"Location: {device.location}")
    print(f"WANCommonInterfaceConfig: {device.wan_common_service_url or 'N/A'}")
    print(f"WANIPConnection: {device.wan_ip_service_url or 'N/A'}")
    print("=" * 60 + "\n")


def run_stats(args, config: Config):
    """Collect one traffic snapshot and print it"""
    try:
        stats = asyncio.run(_collect(config))
    except UpnpError as e:
        logger.error(f"Collection failed: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
    else:
        print(render_stats_text(stats))


def run_serve(args, config: Config):
    """Run the HTTP exporter"""
    import uvicorn

    host = args.host or config.server.bind_address
    port = args.port or config.server.port
    logger.info(f"Server listening on {host}:{port}")
    uvicorn.run(
        "upnp_wan_exporter.main:build_default_app",
        factory=True,
        host=host,
        port=port,
        log_config=None,
    )


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="UPnP WAN Exporter - gateway traffic counters CLI"
    )
    parser.add_argument("--config", "-c", help="Path to config.yaml")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    discover_parser = subparsers.add_parser("discover", help="Discover the gateway and its services")
    discover_parser.set_defaults(func=run_discover)

    stats_parser = subparsers.add_parser("stats", help="Print current WAN traffic counters")
    stats_parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    stats_parser.set_defaults(func=run_stats)

    serve_parser = subparsers.add_parser("serve", help="Run the metrics HTTP server")
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument("--port", "-p", type=int, help="Port (default: from config)")
    serve_parser.set_defaults(func=run_serve)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.config:
        # The served app reads the path from the environment
        os.environ[CONFIG_PATH_ENV] = args.config
    config = get_config()
    setup_logging(config.logging)

    args.func(args, config)


if __name__ == "__main__":
    main()
