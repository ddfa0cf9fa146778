"""Device description resolver.

Fetches the IGD description document and locates the control URLs of the
WANCommonInterfaceConfig and WANIPConnection services.
"""

import httpx
import logging
from typing import Optional, Tuple
from urllib.parse import urljoin

from upnp_wan_exporter.upnp.models import TokenKind
from upnp_wan_exporter.upnp.xml_scanner import scan_xml
from upnp_wan_exporter.upnp.exceptions import (
    ServiceNotFoundError,
    UpnpHTTPError,
    XmlParseError,
)

logger = logging.getLogger(__name__)

WAN_COMMON_SERVICE_MARKER = "WANCommonInterfaceConfig"
WAN_IP_SERVICE_MARKER = "WANIPConnection"


def absolute_control_url(control_url: str, base_url: str) -> str:
    """Resolve a control URL against the description's base URL.

    URLs that already start with ``http`` are returned unchanged.
    """
    if control_url.startswith("http"):
        return control_url
    return urljoin(base_url, control_url)


def parse_service_urls(xml: str, base_url: str) -> Tuple[Optional[str], Optional[str]]:
    """Extract the WAN common interface and WAN IP control URLs.

    Service types are matched by substring, so any version suffix
    qualifies. Relative control URLs are resolved against the document's
    ``URLBase`` when present, otherwise against ``base_url``.

    Raises:
        ServiceNotFoundError: no WANCommonInterfaceConfig service found
    """
    common_path: Optional[str] = None
    ip_path: Optional[str] = None
    url_base: Optional[str] = None

    service_type = ""
    control_url = ""
    in_service = False
    current = None  # element whose text we are collecting
    depth = 0

    try:
        for token in scan_xml(xml):
            if token.kind == TokenKind.START:
                depth += 1
                if token.value == "service":
                    in_service = True
                    service_type = ""
                    control_url = ""
                elif in_service and token.value in ("serviceType", "controlURL"):
                    current = token.value
                elif token.value == "URLBase" and depth == 2:
                    # Only a direct child of the root element
                    current = token.value

            elif token.kind == TokenKind.END:
                depth -= 1
                if token.value == "service":
                    if WAN_COMMON_SERVICE_MARKER in service_type:
                        logger.debug(f"Found {WAN_COMMON_SERVICE_MARKER} service at: {control_url}")
                        common_path = control_url
                    elif WAN_IP_SERVICE_MARKER in service_type:
                        logger.debug(f"Found {WAN_IP_SERVICE_MARKER} service at: {control_url}")
                        ip_path = control_url
                    in_service = False
                if token.value == current:
                    current = None

            elif current == "serviceType":
                service_type = token.value.strip()
            elif current == "controlURL":
                control_url = token.value.strip()
            elif current == "URLBase":
                url_base = token.value.strip()

    except XmlParseError as e:
        logger.error(f"XML parsing error: {e}")

    if common_path is None:
        raise ServiceNotFoundError(f"{WAN_COMMON_SERVICE_MARKER} service not found")

    base = url_base or base_url
    common_url = absolute_control_url(common_path, base)
    ip_url = absolute_control_url(ip_path, base) if ip_path is not None else None
    return common_url, ip_url


class DescriptionResolver:
    """Resolves service control URLs from a device description URL"""

    def __init__(self, session: httpx.AsyncClient):
        self.session = session

    async def fetch_description(self, location: str) -> str:
        """GET the description document"""
        logger.debug(f"Fetching device description from: {location}")
        try:
            response = await self.session.get(location)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpnpHTTPError(f"Failed to fetch device description: {e}") from e

        if not response.is_success:
            raise UpnpHTTPError(
                f"Device description request failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )
        return response.text

    async def resolve_services(self, location: str) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(wan_common_url, wan_ip_url)`` for the device at ``location``"""
        xml = await self.fetch_description(location)
        return parse_service_urls(xml, location)
