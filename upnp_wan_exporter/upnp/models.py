"""UPnP data models"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
from enum import Enum


DEFAULT_CONNECTION_STATUS = "Disconnected"


class TokenKind(str, Enum):
    """Kind of token produced by the XML scanner"""
    START = "start"
    END = "end"
    TEXT = "text"


@dataclass(frozen=True)
class XmlToken:
    """A single XML token.

    For START/END tokens ``value`` is the local element name (any
    namespace prefix removed). For TEXT tokens it is the character data.
    """
    kind: TokenKind
    value: str


@dataclass(frozen=True)
class UpnpDevice:
    """A discovered Internet Gateway Device"""
    location: str  # URL of the device description document
    wan_common_service_url: Optional[str] = None
    wan_ip_service_url: Optional[str] = None


@dataclass(frozen=True)
class TrafficStats:
    """One point-in-time read of the WAN counters"""

    bytes_sent: int = 0
    bytes_received: int = 0
    packets_sent: int = 0
    packets_received: int = 0
    connection_status: str = DEFAULT_CONNECTION_STATUS

    @property
    def is_connected(self) -> bool:
        return self.connection_status == "Up"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
