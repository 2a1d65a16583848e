"""Local-network CO2 sensor data source"""

from datetime import datetime, timezone

from ..decoder import decode_co2
from ..log import get_structured_logger
from ..models import Reading
from .base import DataSourceMetadata
from .http_source import HttpDataSource

logger = get_structured_logger(__name__, component="co2")


class Co2DataSource(HttpDataSource):
    """
    CO2 concentration from a sensor serving {"co2": <ppm>} over HTTP.

    The sensor reports no timestamp; readings carry the time the response
    was received.
    """

    async def fetch(self) -> list[Reading]:
        body = await self._get()
        reading = decode_co2(body, received_at=datetime.now(timezone.utc))
        logger.debug("Retrieved CO2 value", source=self.source_id, ppm=reading.value)
        return [reading]

    def get_metadata(self) -> DataSourceMetadata:
        return DataSourceMetadata(
            source_id=self.source_id,
            name="CO2 Sensor",
            description=f"CO2 ppm from {self.descriptor.endpoint}",
            refresh_interval=self.descriptor.poll_interval,
        )
