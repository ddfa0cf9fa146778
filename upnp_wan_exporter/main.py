"""UPnP WAN Exporter FastAPI Application"""

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from typing import Optional
from datetime import datetime
import logging

from upnp_wan_exporter.config import Config, get_config, setup_logging
from upnp_wan_exporter.metrics import MetricsCollector
from upnp_wan_exporter.upnp.models import TrafficStats
from upnp_wan_exporter.upnp.exceptions import UpnpError
from upnp_wan_exporter.utils.formatting import format_bytes
from upnp_wan_exporter.version import get_version, get_build_info

logger = logging.getLogger(__name__)

router = APIRouter()


def get_collector(request: Request) -> MetricsCollector:
    """Dependency returning the collector owned by the application"""
    return request.app.state.collector


def render_stats_text(stats: TrafficStats) -> str:
    return (
        f"Bytes Sent: {stats.bytes_sent} / {format_bytes(stats.bytes_sent)}\n"
        f"Bytes Received: {stats.bytes_received} / {format_bytes(stats.bytes_received)}\n"
        f"Packets Sent: {stats.packets_sent}\n"
        f"Packets Received: {stats.packets_received}\n"
        f"Connection: {stats.connection_status}"
    )


@router.get("/metrics")
async def metrics(collector: MetricsCollector = Depends(get_collector)):
    """Prometheus exposition of the WAN counters"""
    output, has_error = await collector.collect_metrics()
    if has_error:
        return PlainTextResponse(output, status_code=500)
    return Response(content=output, media_type=CONTENT_TYPE_LATEST)


# Health check endpoint
@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.utcnow()}


@router.get("/stats")
async def stats(
    format: Optional[str] = None,
    collector: MetricsCollector = Depends(get_collector),
):
    """Current WAN traffic snapshot as text, or JSON with ?format=json.

    A failed discovery or service resolution is a server error; counters
    that could not be read are reported with their default values.
    """
    try:
        snapshot = await collector.get_stats()
    except UpnpError as e:
        logger.error(f"Failed to get stats: {e}")
        return PlainTextResponse(str(e), status_code=500)

    if format == "json":
        return JSONResponse(snapshot.to_dict())
    return PlainTextResponse(render_stats_text(snapshot))


# Version endpoint
@router.get("/api/version")
async def get_app_version():
    """Get application version and build information"""
    return get_build_info()


def create_app(
    config: Optional[Config] = None,
    collector: Optional[MetricsCollector] = None,
) -> FastAPI:
    """Build the application and its metrics collector"""
    config = config or get_config()

    app = FastAPI(
        title="UPnP WAN Exporter",
        description="Exports WAN traffic counters of the local UPnP gateway",
        version=get_version(),
    )
    app.state.config = config
    app.state.collector = collector or MetricsCollector.from_config(config)
    app.include_router(router)
    return app


def build_default_app() -> FastAPI:
    """Entry point used by uvicorn: configure logging and build the app"""
    config = get_config()
    setup_logging(config.logging)
    logger.info("Starting UPnP WAN Exporter")
    return create_app(config)
