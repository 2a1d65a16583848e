"""
Latest-value cache bridging the radio scanner and the meter poller.

The scanner writes from its detection callback, the meter poller reads once
per tick. Every access takes the same lock, and the entry is replaced as a
whole, so a reader never sees a temperature from one advertisement paired
with the humidity or timestamp of another.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from .models import CacheEntry

logger = logging.getLogger(__name__)


class SharedReadingCache:
    """Single-slot, lock-protected store for the latest meter sample."""

    def __init__(self) -> None:
        self._entry = CacheEntry()
        self._lock = threading.Lock()

    def set(
        self,
        temperature: float,
        humidity: int,
        observed_at: Optional[datetime] = None,
    ) -> CacheEntry:
        """
        Replace the cached sample.

        Args:
            temperature: Temperature in Celsius
            humidity: Relative humidity in %
            observed_at: When the sample was received (default: now, UTC)

        Returns:
            The entry that was stored
        """
        entry = CacheEntry(
            temperature=temperature,
            humidity=humidity,
            observed_at=observed_at or datetime.now(timezone.utc),
        )
        with self._lock:
            self._entry = entry
        logger.debug(f"Cache updated: T={temperature} H={humidity}")
        return entry

    def get(self) -> CacheEntry:
        """Return the latest sample (the zero entry before the first one)."""
        with self._lock:
            return self._entry

    @property
    def is_observed(self) -> bool:
        """False while the cache still holds the zero sentinel."""
        return not self.get().is_zero
