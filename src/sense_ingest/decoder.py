"""
Pure decoders turning raw payloads into typed readings.

Nothing in this module performs I/O or keeps state:
- decode_remo_devices: Nature Remo cloud API device list
- decode_co2: local CO2 sensor JSON body
- decode_meter_service_data: SwitchBot meter BLE service data bytes
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

from .errors import DecodeError
from .models import Co2Payload, RadioAdvertisement, Reading, ReadingKind, RemoDevice

# Remo newest_events codes -> reading kind
REMO_EVENT_KINDS: dict[str, ReadingKind] = {
    "hu": ReadingKind.HUMIDITY,
    "il": ReadingKind.ILLUMINANCE,
    "mo": ReadingKind.MOVEMENT,
    "te": ReadingKind.TEMPERATURE,
}

# Minimum service data length holding the temperature and humidity bytes
METER_PAYLOAD_MIN_LENGTH = 6

_remo_devices_adapter = TypeAdapter(list[RemoDevice])

Body = Union[str, bytes, Any]


@dataclass(frozen=True)
class MeterSample:
    """Temperature/humidity pair decoded from one meter advertisement."""

    temperature: float  # Celsius
    humidity: int  # %


def _load_json(body: Body) -> Any:
    if isinstance(body, (str, bytes, bytearray)):
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Response is not valid JSON: {e}") from e
    return body


def decode_remo_devices(body: Body) -> list[Reading]:
    """
    Decode a Nature Remo device list into readings.

    Only the first device is consulted. Each present newest_events entry
    yields one Reading stamped with its server-side created_at.

    Args:
        body: Raw response text/bytes or already-parsed JSON

    Returns:
        Readings in hu, il, mo, te order (absent codes are skipped)

    Raises:
        DecodeError: If the body is malformed, empty, or has no events
    """
    data = _load_json(body)
    try:
        devices = _remo_devices_adapter.validate_python(data)
    except ValidationError as e:
        raise DecodeError(f"Unexpected Remo response shape: {e.error_count()} error(s)") from e

    if not devices:
        raise DecodeError("Remo response contains no devices")

    events = devices[0].newest_events
    readings = []
    for code, kind in REMO_EVENT_KINDS.items():
        event = getattr(events, code)
        if event is None:
            continue
        readings.append(Reading(kind=kind, value=event.val, observed_at=event.created_at))

    if not readings:
        raise DecodeError(f"Remo device '{devices[0].name or devices[0].id}' has no newest events")
    return readings


def decode_co2(body: Body, received_at: datetime) -> Reading:
    """
    Decode the local CO2 sensor body ({"co2": <ppm>}).

    The sensor does not report a timestamp, so the reading is stamped
    with the local receipt time.

    Raises:
        DecodeError: If the body is not an object with an integer co2 field
    """
    data = _load_json(body)
    try:
        payload = Co2Payload.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Unexpected CO2 response shape: {e.error_count()} error(s)") from e
    return Reading(kind=ReadingKind.CO2, value=payload.co2, observed_at=received_at)


def decode_meter_service_data(data: bytes) -> Optional[MeterSample]:
    """
    Decode SwitchBot meter service data.

    Byte layout (0-indexed):
        3: low nibble = tenths of a degree
        4: bit 7 = sign (1 positive, 0 negative), bits 0-6 = whole degrees
        5: bits 0-6 = relative humidity in %

    Returns:
        MeterSample, or None when the payload is too short or either value
        decodes to exactly zero (zero doubles as "no reading").
    """
    if len(data) < METER_PAYLOAD_MIN_LENGTH:
        return None

    temperature = (data[3] & 0x0F) / 10.0
    temperature += data[4] & 0x7F
    if not data[4] & 0x80:
        temperature = -temperature
    humidity = data[5] & 0x7F

    if temperature == 0 or humidity == 0:
        return None
    return MeterSample(temperature=round(temperature, 1), humidity=humidity)


def decode_advertisement(advertisement: RadioAdvertisement) -> Optional[MeterSample]:
    """Decode every service data block of an advertisement; the last decodable one wins."""
    sample = None
    for payload in advertisement.service_data.values():
        decoded = decode_meter_service_data(payload)
        if decoded is not None:
            sample = decoded
    return sample
