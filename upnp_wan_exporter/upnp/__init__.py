"""UPnP Internet Gateway Device client

Discovers the LAN gateway via SSDP, resolves its WAN service control URLs
and reads the WAN traffic counters over SOAP.
"""

from upnp_wan_exporter.upnp.client import UpnpClient
from upnp_wan_exporter.upnp.ssdp import SSDPDiscoverer
from upnp_wan_exporter.upnp.models import UpnpDevice, TrafficStats
from upnp_wan_exporter.upnp.exceptions import (
    UpnpError,
    UpnpSocketError,
    DiscoveryTimeoutError,
    UpnpHTTPError,
    XmlParseError,
    ServiceNotFoundError,
    ElementNotFoundError,
    ValueParseError,
    CollectionError,
)

__all__ = [
    "UpnpClient",
    "SSDPDiscoverer",
    "UpnpDevice",
    "TrafficStats",
    "UpnpError",
    "UpnpSocketError",
    "DiscoveryTimeoutError",
    "UpnpHTTPError",
    "XmlParseError",
    "ServiceNotFoundError",
    "ElementNotFoundError",
    "ValueParseError",
    "CollectionError",
]
