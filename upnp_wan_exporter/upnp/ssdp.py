"""SSDP discovery of the Internet Gateway Device.

Sends a single M-SEARCH for the IGD device type and honors only the first
datagram that comes back.
"""

import asyncio
import logging
from typing import Optional, Tuple

from upnp_wan_exporter.upnp.exceptions import DiscoveryTimeoutError, UpnpSocketError

logger = logging.getLogger(__name__)

SSDP_ADDR = "239.255.255.250"
SSDP_PORT = 1900
IGD_SEARCH_TARGET = "urn:schemas-upnp-org:device:InternetGatewayDevice:1"

M_SEARCH_REQUEST = (
    "M-SEARCH * HTTP/1.1\r\n"
    f"HOST: {SSDP_ADDR}:{SSDP_PORT}\r\n"
    "MAN: \"ssdp:discover\"\r\n"
    f"ST: {IGD_SEARCH_TARGET}\r\n"
    "MX: 3\r\n"
    "\r\n"
)


def extract_location(response: str) -> Optional[str]:
    """Return the LOCATION header value of an SSDP response.

    The header name is matched case-insensitively. The value is everything
    after the first colon (URLs keep their own colons), trimmed.
    """
    for line in response.splitlines():
        if line.lower().startswith("location:"):
            location = line.split(":", 1)[1].strip()
            return location or None
    return None


class _FirstResponseProtocol(asyncio.DatagramProtocol):
    """Resolves a future with the first datagram received"""

    def __init__(self, response: asyncio.Future):
        self.response = response

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        if not self.response.done():
            self.response.set_result((data, addr))

    def error_received(self, exc: Exception) -> None:
        if not self.response.done():
            self.response.set_exception(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is not None and not self.response.done():
            self.response.set_exception(exc)


class SSDPDiscoverer:
    """Finds the gateway's device description URL via SSDP"""

    def __init__(
        self,
        timeout: float = 5.0,
        target: Tuple[str, int] = (SSDP_ADDR, SSDP_PORT),
    ):
        self.timeout = timeout
        self.target = target

    async def discover(self) -> Optional[str]:
        """Send M-SEARCH and return the LOCATION of the first responder.

        Returns None when the response carries no LOCATION header.

        Raises:
            DiscoveryTimeoutError: nothing arrived within ``timeout``
            UpnpSocketError: the socket could not be opened, written or read
        """
        logger.debug("Starting UPnP device discovery")
        loop = asyncio.get_running_loop()
        response = loop.create_future()

        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _FirstResponseProtocol(response),
                local_addr=("0.0.0.0", 0),
                allow_broadcast=True,
            )
        except OSError as e:
            logger.error(f"Socket error during discovery: {e}")
            raise UpnpSocketError(f"Socket error: {e}") from e

        try:
            transport.sendto(M_SEARCH_REQUEST.encode("utf-8"), self.target)
            data, addr = await asyncio.wait_for(response, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("No UPnP devices found within timeout")
            raise DiscoveryTimeoutError(
                f"Discovery timeout after {self.timeout}s"
            ) from None
        except OSError as e:
            logger.error(f"Socket error during discovery: {e}")
            raise UpnpSocketError(f"Socket error: {e}") from e
        finally:
            transport.close()

        text = data.decode("utf-8", errors="replace")
        logger.debug(f"Received SSDP response from {addr[0]}: {text}")

        location = extract_location(text)
        if location:
            logger.debug(f"Found UPnP device at: {location}")
        else:
            logger.warning(f"SSDP response from {addr[0]} has no LOCATION header")
        return location
