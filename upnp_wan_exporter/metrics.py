"""Prometheus metrics for the WAN traffic counters"""

import logging
from typing import Callable, Optional, Tuple

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from upnp_wan_exporter.config import Config
from upnp_wan_exporter.upnp.client import UpnpClient
from upnp_wan_exporter.upnp.models import TrafficStats
from upnp_wan_exporter.upnp.exceptions import UpnpError

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Runs a fresh gateway collection per scrape and records it.

    The registry is owned by the collector; nothing is registered in the
    process-wide default registry.
    """

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        client_factory: Optional[Callable[[], UpnpClient]] = None,
        scrape_timeout: Optional[float] = None,
    ):
        self.registry = registry if registry is not None else CollectorRegistry()
        self.client_factory = client_factory or UpnpClient
        self.scrape_timeout = scrape_timeout

        self.bytes_sent = Gauge(
            "upnp_wan_bytes_sent_total",
            "Total bytes sent through WAN connection",
            registry=self.registry,
        )
        self.bytes_received = Gauge(
            "upnp_wan_bytes_received_total",
            "Total bytes received through WAN connection",
            registry=self.registry,
        )
        self.packets_sent = Gauge(
            "upnp_wan_packets_sent_total",
            "Total packets sent through WAN connection",
            registry=self.registry,
        )
        self.packets_received = Gauge(
            "upnp_wan_packets_received_total",
            "Total packets received through WAN connection",
            registry=self.registry,
        )
        self.connection_status = Gauge(
            "upnp_wan_connection_status",
            "WAN connection status (1 = connected, 0 = disconnected)",
            registry=self.registry,
        )
        self.scrape_error = Gauge(
            "upnp_wan_scrape_error",
            "Indicates if there was an error scraping UPnP metrics (1 = error, 0 = success)",
            registry=self.registry,
        )

    @classmethod
    def from_config(cls, config: Config, registry: Optional[CollectorRegistry] = None) -> "MetricsCollector":
        """Build a collector whose clients use the configured timeouts"""
        upnp = config.upnp

        def client_factory() -> UpnpClient:
            return UpnpClient(
                discovery_timeout=upnp.discovery_timeout,
                request_timeout=upnp.request_timeout,
            )

        return cls(
            registry=registry,
            client_factory=client_factory,
            scrape_timeout=upnp.scrape_timeout or None,
        )

    async def get_stats(self) -> TrafficStats:
        """Collect one traffic snapshot from a freshly discovered gateway.

        Raises:
            UpnpError: discovery or resolution failed
        """
        async with self.client_factory() as client:
            return await client.collect(deadline=self.scrape_timeout)

    def update_metrics(self, stats: TrafficStats) -> None:
        self.bytes_sent.set(stats.bytes_sent)
        self.bytes_received.set(stats.bytes_received)
        self.packets_sent.set(stats.packets_sent)
        self.packets_received.set(stats.packets_received)
        self.connection_status.set(1 if stats.is_connected else 0)

    async def collect_metrics(self) -> Tuple[str, bool]:
        """Collect fresh values and encode the registry.

        Returns the exposition text and whether encoding failed. A failed
        collection is reported through ``upnp_wan_scrape_error`` and keeps
        the previous counter values.
        """
        has_error = False
        try:
            stats = await self.get_stats()
        except UpnpError as e:
            logger.error(f"Failed to collect traffic stats: {e}")
            has_error = True
            self.connection_status.set(0)
        else:
            self.update_metrics(stats)
            logger.info(
                f"Updated metrics: bytes_sent={stats.bytes_sent}, "
                f"bytes_received={stats.bytes_received}, "
                f"packets_sent={stats.packets_sent}, "
                f"packets_received={stats.packets_received}, "
                f"connection={stats.connection_status}"
            )

        self.scrape_error.set(1 if has_error else 0)

        try:
            output = generate_latest(self.registry).decode("utf-8")
        except Exception as e:
            logger.error(f"Failed to encode metrics: {e}")
            return "Internal Server Error", True
        return output, False
