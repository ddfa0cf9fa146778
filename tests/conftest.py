"""Pytest fixtures for the UPnP WAN exporter test suite"""

import asyncio
import os
import pytest
import httpx

# Keep a developer's config.yaml out of the tests
os.environ["UPNP_WAN_CONFIG"] = os.path.join(os.path.dirname(__file__), "missing-config.yaml")

from upnp_wan_exporter.upnp.client import UpnpClient


LOCATION = "http://192.168.1.1:1900/desc.xml"
COMMON_CONTROL_URL = "http://192.168.1.1:1900/upnp/control/WANCommonIFC1"
IP_CONTROL_URL = "http://192.168.1.1:1900/upnp/control/WANIPConn1"

DESCRIPTION_XML = """<?xml version="1.0"?>
<root xmlns="urn:schemas-upnp-org:device-1-0">
  <specVersion><major>1</major><minor>0</minor></specVersion>
  <device>
    <deviceType>urn:schemas-upnp-org:device:InternetGatewayDevice:1</deviceType>
    <friendlyName>Test Router</friendlyName>
    <serviceList>
      <service>
        <serviceType>urn:schemas-upnp-org:service:Layer3Forwarding:1</serviceType>
        <controlURL>/upnp/control/L3F</controlURL>
      </service>
    </serviceList>
    <deviceList>
      <device>
        <deviceType>urn:schemas-upnp-org:device:WANDevice:1</deviceType>
        <serviceList>
          <service>
            <serviceType>urn:schemas-upnp-org:service:WANCommonInterfaceConfig:1</serviceType>
            <serviceId>urn:upnp-org:serviceId:WANCommonIFC1</serviceId>
            <controlURL>/upnp/control/WANCommonIFC1</controlURL>
            <eventSubURL>/upnp/event/WANCommonIFC1</eventSubURL>
            <SCPDURL>/WANCommonIFC1.xml</SCPDURL>
          </service>
        </serviceList>
        <deviceList>
          <device>
            <deviceType>urn:schemas-upnp-org:device:WANConnectionDevice:1</deviceType>
            <serviceList>
              <service>
                <serviceType>urn:schemas-upnp-org:service:WANIPConnection:1</serviceType>
                <controlURL>/upnp/control/WANIPConn1</controlURL>
              </service>
            </serviceList>
          </device>
        </deviceList>
      </device>
    </deviceList>
  </device>
</root>
"""

SOAP_FAULT = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
  <s:Body>
    <s:Fault>
      <faultcode>s:Client</faultcode>
      <faultstring>UPnPError</faultstring>
      <detail>
        <UPnPError xmlns="urn:schemas-upnp-org:control-1-0">
          <errorCode>401</errorCode>
          <errorDescription>Invalid Action</errorDescription>
        </UPnPError>
      </detail>
    </s:Fault>
  </s:Body>
</s:Envelope>
"""

ACTION_ELEMENTS = {
    "GetTotalBytesSent": "NewTotalBytesSent",
    "GetTotalBytesReceived": "NewTotalBytesReceived",
    "GetTotalPacketsSent": "NewTotalPacketsSent",
    "GetTotalPacketsReceived": "NewTotalPacketsReceived",
    "GetCommonLinkProperties": "NewPhysicalLinkStatus",
}


def soap_response(action: str, element: str, value) -> str:
    """Build a SOAP response carrying a single output argument"""
    return f"""<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
  <s:Body>
    <u:{action}Response xmlns:u="urn:schemas-upnp-org:service:WANCommonInterfaceConfig:1">
      <{element}>{value}</{element}>
    </u:{action}Response>
  </s:Body>
</s:Envelope>
"""


class FakeGateway:
    """In-memory gateway served through httpx.MockTransport"""

    def __init__(self, description: str = DESCRIPTION_XML, location: str = LOCATION):
        self.description = description
        self.location = location
        self.values = {
            "GetTotalBytesSent": 1000,
            "GetTotalBytesReceived": 2000,
            "GetTotalPacketsSent": 10,
            "GetTotalPacketsReceived": 20,
            "GetCommonLinkProperties": "Up",
        }
        self.failing_actions = set()
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "GET":
            if str(request.url) == self.location:
                return httpx.Response(200, text=self.description)
            return httpx.Response(404, text="Not Found")

        action = request.headers["SOAPAction"].strip('";').split("#", 1)[1]
        if action in self.failing_actions:
            return httpx.Response(500, text=SOAP_FAULT)
        return httpx.Response(
            200,
            text=soap_response(action, ACTION_ELEMENTS[action], self.values[action]),
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def soap_actions(self):
        return [
            r.headers["SOAPAction"].strip('";').split("#", 1)[1]
            for r in self.requests
            if r.method == "POST"
        ]


class FakeDiscoverer:
    """Stands in for SSDPDiscoverer"""

    def __init__(self, location=LOCATION, error: Exception = None, delay: float = 0):
        self.location = location
        self.error = error
        self.delay = delay
        self.calls = 0

    async def discover(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.location


@pytest.fixture
def gateway():
    """A gateway answering every query successfully"""
    return FakeGateway()


@pytest.fixture
def make_client(gateway):
    """Factory for UpnpClient instances wired to the fake gateway"""
    def _make(discoverer=None, **kwargs):
        return UpnpClient(
            discoverer=discoverer or FakeDiscoverer(),
            transport=gateway.transport,
            **kwargs,
        )
    return _make
