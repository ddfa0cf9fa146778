"""Tests for FastAPI endpoints"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from upnp_wan_exporter.config import Config
from upnp_wan_exporter.main import create_app, render_stats_text
from upnp_wan_exporter.metrics import MetricsCollector
from upnp_wan_exporter.upnp.exceptions import UpnpSocketError
from upnp_wan_exporter.upnp.models import TrafficStats

from conftest import FakeDiscoverer


@pytest.fixture
def discoverer():
    return FakeDiscoverer()


@pytest.fixture
def collector(make_client, discoverer):
    return MetricsCollector(client_factory=lambda: make_client(discoverer))


@pytest.fixture
def client(collector):
    """Test client for the exporter app backed by the fake gateway"""
    app = create_app(config=Config(), collector=collector)
    with TestClient(app) as test_client:
        yield test_client


class TestHealthEndpoint:
    """Tests for health check endpoint"""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    def test_health_does_not_touch_gateway(self, client, discoverer):
        client.get("/health")
        assert discoverer.calls == 0


class TestVersionEndpoint:
    """Tests for version endpoint"""

    def test_version_endpoint(self, client):
        response = client.get("/api/version")
        assert response.status_code == status.HTTP_200_OK
        assert "version" in response.json()


class TestMetricsEndpoint:
    """Tests for the Prometheus endpoint"""

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/plain")
        assert "upnp_wan_bytes_sent_total 1000.0" in response.text
        assert "upnp_wan_connection_status 1.0" in response.text
        assert "upnp_wan_scrape_error 0.0" in response.text

    def test_metrics_collected_per_request(self, client, gateway):
        client.get("/metrics")
        gateway.values["GetTotalBytesSent"] = 5000
        response = client.get("/metrics")
        assert "upnp_wan_bytes_sent_total 5000.0" in response.text

    def test_failed_collection_still_served(self, client, discoverer):
        discoverer.error = UpnpSocketError("Socket error")
        response = client.get("/metrics")
        assert response.status_code == status.HTTP_200_OK
        assert "upnp_wan_scrape_error 1.0" in response.text
        assert "upnp_wan_connection_status 0.0" in response.text

    def test_encoding_failure(self, client, collector, monkeypatch):
        async def broken():
            return "Internal Server Error", True

        monkeypatch.setattr(collector, "collect_metrics", broken)
        response = client.get("/metrics")
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.text == "Internal Server Error"


class TestStatsEndpoint:
    """Tests for the human readable and JSON snapshot endpoint"""

    def test_text(self, client):
        response = client.get("/stats")
        assert response.status_code == status.HTTP_200_OK
        assert response.text == (
            "Bytes Sent: 1000 / 1000 B\n"
            "Bytes Received: 2000 / 1.95 KB\n"
            "Packets Sent: 10\n"
            "Packets Received: 20\n"
            "Connection: Up"
        )

    def test_json(self, client):
        response = client.get("/stats?format=json")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "bytes_sent": 1000,
            "bytes_received": 2000,
            "packets_sent": 10,
            "packets_received": 20,
            "connection_status": "Up",
        }

    def test_unknown_format_is_text(self, client):
        response = client.get("/stats?format=xml")
        assert response.text.startswith("Bytes Sent: 1000")

    def test_partial_failure_reports_defaults(self, client, gateway):
        gateway.failing_actions.add("GetCommonLinkProperties")
        response = client.get("/stats?format=json")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["connection_status"] == "Disconnected"

    def test_collection_failure(self, client, discoverer):
        discoverer.error = UpnpSocketError("Socket error")
        response = client.get("/stats")
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "Device discovery failed" in response.text


class TestRenderStatsText:
    """Tests for the plain text snapshot"""

    def test_large_counters(self):
        text = render_stats_text(TrafficStats(bytes_sent=3 * 1024 ** 3, connection_status="Down"))
        assert "Bytes Sent: 3221225472 / 3.00 GB" in text
        assert text.endswith("Connection: Down")
