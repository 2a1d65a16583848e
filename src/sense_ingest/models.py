"""Pydantic models shared by decoders, sources and sinks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReadingKind(str, Enum):
    """Kinds of readings; each kind is persisted as its own record stream."""

    HUMIDITY = "humidity"
    TEMPERATURE = "temperature"
    ILLUMINANCE = "illuminance"
    MOVEMENT = "movement"
    CO2 = "co2"


class Reading(BaseModel):
    """A single typed sensor reading. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    kind: ReadingKind
    value: float
    observed_at: datetime

    def to_record(self) -> dict[str, Any]:
        """Persisted shape: {"value": number, "time": ISO-8601}."""
        return {"value": self.value, "time": self.observed_at.isoformat()}


class SourceDescriptor(BaseModel):
    """Static description of one sensor source, built at bootstrap."""

    model_config = ConfigDict(frozen=True)

    source_id: str
    endpoint: str  # URL for HTTP sources, hardware address for radio sources
    poll_interval: float  # seconds
    credential: str | None = Field(default=None, repr=False)


@dataclass(frozen=True)
class RadioAdvertisement:
    """One received BLE advertisement, reduced to what the decoder needs.

    service_data maps service UUID -> payload bytes, in the order received.
    """

    address: str
    service_data: dict[str, bytes]


@dataclass(frozen=True)
class CacheEntry:
    """Latest radio sample. The zero entry means "not yet observed"."""

    temperature: float = 0.0
    humidity: int = 0
    observed_at: datetime | None = None

    @property
    def is_zero(self) -> bool:
        return self.temperature == 0 or self.humidity == 0


# --- Upstream wire formats ---


class RemoEvent(BaseModel):
    """One entry of a Remo device's newest_events object."""

    val: float
    created_at: datetime


class RemoNewestEvents(BaseModel):
    hu: RemoEvent | None = None
    il: RemoEvent | None = None
    mo: RemoEvent | None = None
    te: RemoEvent | None = None


class RemoDevice(BaseModel):
    """A device object from the Nature Remo cloud API (unused fields ignored)."""

    id: str = ""
    name: str = ""
    mac_address: str = ""
    serial_number: str = ""
    firmware_version: str = ""
    temperature_offset: int = 0
    humidity_offset: int = 0
    newest_events: RemoNewestEvents = Field(default_factory=RemoNewestEvents)


class Co2Payload(BaseModel):
    """Body served by the local CO2 sensor."""

    co2: int
