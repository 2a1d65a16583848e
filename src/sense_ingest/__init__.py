"""Sense Ingest - poll home sensors and persist their readings."""

__version__ = "0.3.0"
