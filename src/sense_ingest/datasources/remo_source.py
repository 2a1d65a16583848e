"""Nature Remo cloud API data source"""

from ..decoder import decode_remo_devices
from ..errors import StartupError
from ..log import get_structured_logger
from ..models import Reading
from .base import DataSourceMetadata
from .http_source import HttpDataSource

logger = get_structured_logger(__name__, component="remo")

REMO_DEVICES_URL = "https://api.nature.global/1/devices"


class RemoDataSource(HttpDataSource):
    """
    Humidity, illuminance, movement and temperature from a Nature Remo.

    Every fetch requests the device list with the bearer token read at
    startup and returns the newest event of each kind, stamped with the
    time the cloud recorded it.
    """

    async def initialize(self) -> None:
        if not self.descriptor.credential:
            raise StartupError(f"{self.source_id}: no API token configured")
        await super().initialize()

    def request_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.descriptor.credential}",
        }

    async def fetch(self) -> list[Reading]:
        body = await self._get()
        readings = decode_remo_devices(body)
        logger.info(
            "Retrieved Remo readings",
            source=self.source_id,
            kinds=",".join(r.kind.value for r in readings),
        )
        return readings

    def get_metadata(self) -> DataSourceMetadata:
        return DataSourceMetadata(
            source_id=self.source_id,
            name="Nature Remo",
            description="Newest sensor events from the Nature Remo cloud API",
            refresh_interval=self.descriptor.poll_interval,
            requires_auth=True,
        )
