"""UPnP WAN Exporter

Reads WAN traffic counters from the local Internet Gateway Device and
exposes them as Prometheus metrics, text and JSON.
"""
