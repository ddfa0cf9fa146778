"""SOAP client for the WANCommonInterfaceConfig counters"""

import re
import httpx
import logging
from typing import Optional

from upnp_wan_exporter.upnp.models import TokenKind
from upnp_wan_exporter.upnp.xml_scanner import scan_xml
from upnp_wan_exporter.upnp.exceptions import (
    ElementNotFoundError,
    UpnpHTTPError,
    ValueParseError,
    XmlParseError,
)

logger = logging.getLogger(__name__)

WAN_COMMON_SERVICE_TYPE = "urn:schemas-upnp-org:service:WANCommonInterfaceConfig:1"

SOAP_ENVELOPE = """<?xml version="1.0" encoding="utf-8"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
    <s:Body>
        <u:{action} xmlns:u="{service_type}" />
    </s:Body>
</s:Envelope>"""

U64_MAX = 2 ** 64 - 1
_UNSIGNED_RE = re.compile(r"\+?[0-9]+")


def find_element_text(xml: str, element_name: str) -> Optional[str]:
    """Return the first text found inside ``element_name``, or None.

    Elements are matched by local name, so SOAP prefixes are ignored.
    A parse error ends the search.
    """
    in_target = False
    try:
        for token in scan_xml(xml):
            if token.kind == TokenKind.START:
                if token.value == element_name:
                    in_target = True
            elif token.kind == TokenKind.END:
                if token.value == element_name:
                    in_target = False
            elif in_target:
                return token.value
    except XmlParseError as e:
        logger.error(f"XML parsing error: {e}")
    return None


def parse_string_response(xml: str, element_name: str) -> str:
    """Return the raw text of ``element_name`` in a SOAP response"""
    text = find_element_text(xml, element_name)
    if text is None:
        raise ElementNotFoundError(f"Element {element_name} not found in response")
    return text


def parse_u64_response(xml: str, element_name: str) -> int:
    """Return the unsigned 64-bit integer held by ``element_name``"""
    text = parse_string_response(xml, element_name).strip()
    if not _UNSIGNED_RE.fullmatch(text):
        raise ValueParseError(f"Failed to parse {element_name}: {text!r} is not an unsigned integer")
    value = int(text)
    if value > U64_MAX:
        raise ValueParseError(f"Failed to parse {element_name}: {text} out of range")
    return value


def describe_fault(xml: str) -> Optional[str]:
    """Summarise a UPnP SOAP fault body, if it is one"""
    code = find_element_text(xml, "errorCode")
    description = find_element_text(xml, "errorDescription")
    if code is None and description is None:
        return None
    if code is None:
        return description.strip()
    if description is None:
        return f"UPnP error {code.strip()}"
    return f"UPnP error {code.strip()}: {description.strip()}"


class SoapClient:
    """Issues zero-argument WANCommonInterfaceConfig actions"""

    def __init__(self, session: httpx.AsyncClient, service_type: str = WAN_COMMON_SERVICE_TYPE):
        self.session = session
        self.service_type = service_type

    async def soap_request(self, service_url: str, action: str) -> str:
        """POST ``action`` to ``service_url`` and return the response body"""
        soap_action = f"{self.service_type}#{action}"
        logger.debug(f"SOAP request to {service_url}: {soap_action}")

        headers = {
            "Content-Type": "text/xml; charset=\"utf-8\"",
            "SOAPAction": f"\"{soap_action}\";",
        }
        body = SOAP_ENVELOPE.format(action=action, service_type=self.service_type)

        try:
            response = await self.session.post(service_url, content=body, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpnpHTTPError(f"SOAP request {action} failed: {e}") from e

        text = response.text
        logger.debug(f"SOAP response: {text}")

        if not response.is_success:
            detail = describe_fault(text)
            message = f"SOAP request {action} failed (HTTP {response.status_code})"
            if detail:
                message = f"{message}: {detail}"
            raise UpnpHTTPError(message, status_code=response.status_code)

        return text

    async def get_total_bytes_sent(self, service_url: str) -> int:
        response = await self.soap_request(service_url, "GetTotalBytesSent")
        return parse_u64_response(response, "NewTotalBytesSent")

    async def get_total_bytes_received(self, service_url: str) -> int:
        response = await self.soap_request(service_url, "GetTotalBytesReceived")
        return parse_u64_response(response, "NewTotalBytesReceived")

    async def get_total_packets_sent(self, service_url: str) -> int:
        response = await self.soap_request(service_url, "GetTotalPacketsSent")
        return parse_u64_response(response, "NewTotalPacketsSent")

    async def get_total_packets_received(self, service_url: str) -> int:
        response = await self.soap_request(service_url, "GetTotalPacketsReceived")
        return parse_u64_response(response, "NewTotalPacketsReceived")

    async def get_physical_link_status(self, service_url: str) -> str:
        """Link status as reported by the device ("Up", "Down", ...)"""
        response = await self.soap_request(service_url, "GetCommonLinkProperties")
        return parse_string_response(response, "NewPhysicalLinkStatus")
