"""SwitchBot meter data source (BLE advertisements via the shared cache)"""

from datetime import datetime
from typing import Optional

from ..cache import SharedReadingCache
from ..log import get_structured_logger
from ..models import Reading, ReadingKind, SourceDescriptor
from .base import DataSource, DataSourceMetadata

logger = get_structured_logger(__name__, component="meter")


class MeterDataSource(DataSource):
    """
    Temperature and humidity from a SwitchBot meter.

    The meter is never contacted here: RadioScanner fills the shared cache
    from BLE advertisements and fetch() only reads it. While the cache holds
    the zero sentinel nothing is returned.

    For each kind the last value handed out is remembered. An unchanged value
    is re-emitted with the timestamp of its first observation, so the sink
    sees an exact duplicate and its uniqueness handling decides what to do.
    """

    def __init__(self, descriptor: SourceDescriptor, cache: SharedReadingCache):
        super().__init__(descriptor)
        self._cache = cache
        self._last: dict[ReadingKind, tuple[float, datetime]] = {}

    async def fetch(self) -> list[Reading]:
        entry = self._cache.get()
        if entry.is_zero or entry.observed_at is None:
            logger.debug("No meter sample cached yet", source=self.source_id)
            return []

        readings = [
            self._track(ReadingKind.TEMPERATURE, entry.temperature, entry.observed_at),
            self._track(ReadingKind.HUMIDITY, float(entry.humidity), entry.observed_at),
        ]
        logger.info(
            "Meter reading",
            source=self.source_id,
            temperature=entry.temperature,
            humidity=entry.humidity,
        )
        return readings

    def _track(self, kind: ReadingKind, value: float, observed_at: datetime) -> Reading:
        last = self._last.get(kind)
        if last is None or last[0] != value:
            last = (value, observed_at)
            self._last[kind] = last
        return Reading(kind=kind, value=last[0], observed_at=last[1])

    def last_value(self, kind: ReadingKind) -> Optional[float]:
        """Last value passed on for a kind, or None if none yet"""
        last = self._last.get(kind)
        return last[0] if last else None

    def get_metadata(self) -> DataSourceMetadata:
        return DataSourceMetadata(
            source_id=self.source_id,
            name="SwitchBot Meter",
            description=f"BLE thermo-hygrometer {self.descriptor.endpoint}",
            refresh_interval=self.descriptor.poll_interval,
        )
