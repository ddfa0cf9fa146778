"""UPnP IGD client.

Ties SSDP discovery, description resolution and the SOAP counter queries
together into one traffic snapshot per collection.
"""

import asyncio
import dataclasses
import httpx
import logging
from typing import Optional, Dict, Any

from upnp_wan_exporter.upnp.models import UpnpDevice, TrafficStats
from upnp_wan_exporter.upnp.ssdp import SSDPDiscoverer
from upnp_wan_exporter.upnp.description import DescriptionResolver
from upnp_wan_exporter.upnp.soap import SoapClient
from upnp_wan_exporter.upnp.exceptions import (
    CollectionError,
    ServiceNotFoundError,
    UpnpError,
)

logger = logging.getLogger(__name__)


class UpnpClient:
    """Client for a single Internet Gateway Device.

    A client discovers at most one device per ``discover_device`` call and
    keeps it only until the next discovery. Create a fresh client for
    every scrape.
    """

    def __init__(
        self,
        discovery_timeout: float = 5.0,
        request_timeout: float = 10.0,
        discoverer: Optional[SSDPDiscoverer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.discovery_timeout = discovery_timeout
        self.request_timeout = request_timeout
        self.discoverer = discoverer or SSDPDiscoverer(timeout=discovery_timeout)
        self._transport = transport

        self._session: Optional[httpx.AsyncClient] = None
        self.device: Optional[UpnpDevice] = None

    async def __aenter__(self) -> "UpnpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_session(self) -> httpx.AsyncClient:
        """Get or create HTTP session"""
        if self._session is None:
            self._session = httpx.AsyncClient(
                timeout=self.request_timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session"""
        if self._session:
            await self._session.aclose()
            self._session = None

    async def discover_device(self) -> None:
        """Discover the gateway and resolve its service URLs.

        A response without a LOCATION header completes without error but
        leaves ``device`` unset.
        """
        self.device = None

        location = await self.discoverer.discover()
        if not location:
            return

        self.device = UpnpDevice(location=location)
        await self.setup_service()

    async def setup_service(self) -> None:
        """Resolve the control URLs of the discovered device"""
        if self.device is None:
            raise ServiceNotFoundError("No device found")

        session = await self._get_session()
        resolver = DescriptionResolver(session)
        common_url, ip_url = await resolver.resolve_services(self.device.location)

        self.device = dataclasses.replace(
            self.device,
            wan_common_service_url=common_url,
            wan_ip_service_url=ip_url,
        )

    async def get_traffic_stats(self) -> TrafficStats:
        """Query the five WAN counters.

        Each query is independent: a failed one is logged and its field
        keeps the default value.
        """
        if self.device is None:
            raise ServiceNotFoundError("No device configured")
        service_url = self.device.wan_common_service_url
        if not service_url:
            raise ServiceNotFoundError("No WANCommonInterfaceConfig service URL")

        soap = SoapClient(await self._get_session())
        queries = {
            "bytes_sent": soap.get_total_bytes_sent,
            "bytes_received": soap.get_total_bytes_received,
            "packets_sent": soap.get_total_packets_sent,
            "packets_received": soap.get_total_packets_received,
            "connection_status": soap.get_physical_link_status,
        }

        async def query(field: str, call) -> Optional[Any]:
            try:
                return await call(service_url)
            except UpnpError as e:
                logger.warning(f"Failed to get {field}: {e}")
                return None

        results = await asyncio.gather(
            *(query(field, call) for field, call in queries.items())
        )

        values: Dict[str, Any] = {
            field: value
            for field, value in zip(queries, results)
            if value is not None
        }
        return TrafficStats(**values)

    async def collect(self, deadline: Optional[float] = None) -> TrafficStats:
        """Run a full discovery, resolution and counter collection.

        Args:
            deadline: Overall time limit in seconds; None or 0 disables it

        Raises:
            CollectionError: discovery or resolution failed, or the
                deadline expired
        """
        if deadline:
            try:
                return await asyncio.wait_for(self._collect(), timeout=deadline)
            except asyncio.TimeoutError:
                raise CollectionError(
                    "timeout", f"Collection exceeded {deadline}s deadline"
                ) from None
        return await self._collect()

    async def _collect(self) -> TrafficStats:
        self.device = None
        try:
            location = await self.discoverer.discover()
        except UpnpError as e:
            raise CollectionError("discovery", f"Device discovery failed: {e}") from e

        try:
            if location:
                self.device = UpnpDevice(location=location)
            await self.setup_service()
        except UpnpError as e:
            raise CollectionError("resolution", f"Service resolution failed: {e}") from e

        return await self.get_traffic_stats()
