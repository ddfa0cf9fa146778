"""UPnP client exceptions"""

from typing import Optional


class UpnpError(Exception):
    """Base exception for the UPnP client"""
    pass


class UpnpSocketError(UpnpError):
    """UDP bind, send or receive failed during SSDP discovery"""
    pass


class DiscoveryTimeoutError(UpnpError):
    """No SSDP response arrived within the discovery timeout"""
    pass


class UpnpHTTPError(UpnpError):
    """HTTP transport failure or non-success status from the gateway"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class XmlParseError(UpnpError):
    """Malformed XML document"""
    pass


class ServiceNotFoundError(UpnpError):
    """No WANCommonInterfaceConfig control URL could be located"""
    pass


class ElementNotFoundError(UpnpError):
    """SOAP response does not contain the expected element"""
    pass


class ValueParseError(UpnpError):
    """SOAP response element holds a value that cannot be parsed"""
    pass


class CollectionError(UpnpError):
    """A traffic collection failed as a whole.

    ``stage`` is one of ``"discovery"``, ``"resolution"`` or ``"timeout"``.
    The underlying error is chained as ``__cause__``.
    """

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
