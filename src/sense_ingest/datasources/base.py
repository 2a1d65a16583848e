"""
Base interface for all data sources in sense-ingest.

A data source knows how to fetch the current readings of one sensor. It does
NOT schedule itself - a SourcePoller calls fetch() once per interval and
hands the result to the persistence sink.

Two variants exist:
- HTTP polled sources make a fresh request on every fetch()
- Radio scanned sources return whatever the background BLE scan last cached
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..models import Reading, SourceDescriptor


@dataclass
class DataSourceMetadata:
    """
    Metadata describing a data source.

    Attributes:
        source_id: Unique identifier for this data source
        name: Human-readable name
        description: Brief description of what this source provides
        refresh_interval: How often (in seconds) the poller should fetch
        requires_auth: Whether this source needs a credential
    """

    source_id: str
    name: str
    description: str
    refresh_interval: float
    requires_auth: bool = False


class DataSource(ABC):
    """
    Abstract base class for all data sources.

    Subclasses differ only in their fetch strategy; scheduling, error
    handling and delivery live in SourcePoller.
    """

    def __init__(self, descriptor: SourceDescriptor):
        self._descriptor = descriptor

    @property
    def descriptor(self) -> SourceDescriptor:
        return self._descriptor

    @property
    def source_id(self) -> str:
        return self._descriptor.source_id

    async def initialize(self) -> None:  # noqa: B027
        """
        Prepare the source (open clients, validate configuration).

        Called once at startup. Raising here aborts startup.
        """

    @abstractmethod
    async def fetch(self) -> list[Reading]:
        """
        Fetch the current readings of this source.

        Returns:
            Readings to persist (may be empty when nothing is available yet)

        Raises:
            FetchError: If the upstream could not be reached
            DecodeError: If the upstream answered with an unexpected payload
        """

    @abstractmethod
    def get_metadata(self) -> DataSourceMetadata:
        """Describe this source. Must not perform I/O."""

    async def shutdown(self) -> None:  # noqa: B027
        """Release resources held by this source."""
