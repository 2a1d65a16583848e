"""
Data sources package for sense-ingest.

Every source implements the DataSource interface; they differ only in how a
tick fetches its readings (HTTP request or shared-cache read).
"""

from .base import DataSource, DataSourceMetadata
from .co2_source import Co2DataSource
from .http_source import HttpDataSource
from .meter_source import MeterDataSource
from .remo_source import RemoDataSource

__all__ = [
    "DataSource",
    "DataSourceMetadata",
    "HttpDataSource",
    "RemoDataSource",
    "Co2DataSource",
    "MeterDataSource",
]
