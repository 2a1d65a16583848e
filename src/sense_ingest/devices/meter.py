"""SwitchBot meter BLE scanner.

Uses passive BLE scanning via bleak: the meter broadcasts its temperature and
humidity in the service data of every advertisement, so no connection is
ever made. Matching advertisements are decoded and published to the shared
cache, which the meter poller reads on its own schedule.
"""

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from bleak import BleakScanner
from bleak.exc import BleakError

from ..cache import SharedReadingCache
from ..decoder import decode_advertisement
from ..errors import StartupError
from ..models import RadioAdvertisement

logger = logging.getLogger(__name__)

DEFAULT_SCAN_TIMEOUT = 10.0  # seconds per scan window
DEFAULT_SCAN_INTERVAL = 60.0  # seconds between scan windows


class RadioScanner:
    """
    Scans for one meter and keeps the shared cache up to date.

    Provides three operations:
    - open(): verify the BLE adapter works (fatal at startup if not)
    - scan_once(): one bounded scan window
    - run(): scan windows on an interval until shutdown
    """

    def __init__(
        self,
        address: str,
        cache: SharedReadingCache,
        timeout: float = DEFAULT_SCAN_TIMEOUT,
        scan_interval: float = DEFAULT_SCAN_INTERVAL,
        scanner_factory: Callable[..., Any] = BleakScanner,
    ):
        self.address = address.upper()
        self.timeout = timeout
        self.scan_interval = scan_interval
        self._cache = cache
        self._scanner_factory = scanner_factory
        self._lock = asyncio.Lock()
        self.windows = 0
        self.published = 0

    async def open(self) -> None:
        """
        Check that a BLE adapter can be initialised.

        Raises:
            StartupError: If no adapter is available
        """
        try:
            scanner = self._scanner_factory()
            await scanner.start()
            await scanner.stop()
        except (BleakError, OSError) as e:
            raise StartupError(f"Failed to initialise Bluetooth adapter: {e}") from e
        logger.info(f"Bluetooth adapter ready, watching {self.address}")

    def handle_advertisement(self, advertisement: RadioAdvertisement) -> bool:
        """
        Filter, decode and publish one advertisement.

        Returns:
            True if the cache was updated
        """
        if advertisement.address.upper() != self.address:
            return False

        sample = decode_advertisement(advertisement)
        if sample is None:
            # Zero or short payloads are indistinguishable from "no reading"
            logger.debug(f"Meter {self.address}: advertisement without a usable sample")
            return False

        self._cache.set(sample.temperature, sample.humidity, datetime.now(timezone.utc))
        logger.debug(f"Meter {self.address}: T={sample.temperature} H={sample.humidity}")
        return True

    def _on_detect(self, device: Any, advertisement_data: Any) -> bool:
        advertisement = RadioAdvertisement(
            address=device.address,
            service_data=dict(advertisement_data.service_data or {}),
        )
        return self.handle_advertisement(advertisement)

    async def scan_once(self, stop_event: Optional[asyncio.Event] = None) -> int:
        """
        Run one scan window of `timeout` seconds.

        The window ends early when stop_event is set. Running out of time is
        the normal way for a window to end and is not an error.

        Returns:
            Number of advertisements published to the cache in this window
        """
        published = 0

        def on_detect(device: Any, advertisement_data: Any) -> None:
            nonlocal published
            if self._on_detect(device, advertisement_data):
                published += 1

        stop = stop_event or asyncio.Event()
        async with self._lock:
            try:
                async with self._scanner_factory(detection_callback=on_detect):
                    with contextlib.suppress(asyncio.TimeoutError):
                        await asyncio.wait_for(stop.wait(), timeout=self.timeout)
            except (BleakError, OSError) as e:
                logger.error(f"BLE scan error: {e}")

        self.windows += 1
        self.published += published
        if published:
            logger.info(f"Meter scan: {published} advertisement(s) from {self.address}")
        else:
            logger.debug(f"Meter scan: nothing from {self.address} this window")
        return published

    async def run(self, stop_event: asyncio.Event) -> None:
        """Scan on an interval until stop_event is set"""
        logger.info(f"Meter scan loop started ({self.timeout}s window every {self.scan_interval}s)")
        while not stop_event.is_set():
            try:
                await self.scan_once(stop_event)
            except Exception as e:
                logger.error(f"Meter scan window failed: {e}", exc_info=True)
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=self.scan_interval)
        logger.info("Meter scan loop stopped")
