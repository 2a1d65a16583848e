"""
Fixed-interval polling of a single data source.

Each SourcePoller owns one schedule: wait for the tick, fetch, deliver every
reading to the sink, wait again. Failures skip the tick; the next scheduled
tick is the only recovery. Ticks of one poller never overlap.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable
from enum import Enum
from typing import Callable, Optional

from .datasources.base import DataSource
from .errors import DecodeError, FetchError, SinkError
from .models import Reading
from .sink import PersistenceSink

logger = logging.getLogger(__name__)


class PollerState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    FETCHING = "fetching"
    DELIVERING = "delivering"
    SKIPPING = "skipping"
    STOPPED = "stopped"


class SourcePoller:
    """
    Polls one data source at a fixed interval and forwards readings to a sink.

    Ticks are anchored to the start time (tick k fires at start + k * interval),
    so time spent fetching does not accumulate as drift. A fetch that overruns
    its interval delays the next tick; ticks missed entirely are dropped, not
    queued.
    """

    def __init__(
        self,
        source: DataSource,
        sink: PersistenceSink,
        stop_event: asyncio.Event,
        interval: Optional[float] = None,
        first_tick_immediate: bool = False,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize the poller.

        Args:
            source: Data source to fetch from
            sink: Where readings are delivered
            stop_event: Shared shutdown signal
            interval: Seconds between ticks (default: the source's poll_interval)
            first_tick_immediate: Fetch right away instead of after one interval
            clock: Monotonic clock in seconds
            sleep: Coroutine waiting the given number of seconds; the default
                returns early when stop_event is set
        """
        self.source = source
        self.sink = sink
        self.interval = interval if interval is not None else source.descriptor.poll_interval
        if self.interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {self.interval}")
        self.first_tick_immediate = first_tick_immediate
        self.state = PollerState.IDLE

        self._stop_event = stop_event
        self._clock = clock
        self._sleep = sleep or self._wait_for_stop

        self.tick_count = 0
        self.error_count = 0
        self.delivered_count = 0
        self.skipped_ticks = 0
        self.last_error: Optional[str] = None

    @property
    def source_id(self) -> str:
        return self.source.source_id

    async def _wait_for_stop(self, delay: float) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)

    async def run(self) -> None:
        """Tick until the stop event is set"""
        logger.info(f"[{self.source_id}] Poller started (interval={self.interval}s)")
        start = self._clock()
        next_tick = start if self.first_tick_immediate else start + self.interval

        try:
            while not self._stop_event.is_set():
                self.state = PollerState.WAITING
                delay = next_tick - self._clock()
                if delay > 0:
                    await self._sleep(delay)
                if self._stop_event.is_set():
                    break

                await self.tick()

                next_tick += self.interval
                behind = self._clock() - next_tick
                if behind > 0:
                    missed = int(behind // self.interval)
                    if missed:
                        self.skipped_ticks += missed
                        next_tick += missed * self.interval
                        logger.warning(
                            f"[{self.source_id}] Tick overran, dropping {missed} missed tick(s)"
                        )
        finally:
            self.state = PollerState.STOPPED
            logger.info(f"[{self.source_id}] Poller stopped after {self.tick_count} tick(s)")

    async def tick(self) -> list[Reading]:
        """
        Run one fetch-and-deliver cycle.

        Returns:
            Readings accepted by the sink during this tick
        """
        self.tick_count += 1
        self.state = PollerState.FETCHING
        try:
            readings = await self.source.fetch()
        except (FetchError, DecodeError) as e:
            self._skip(str(e))
            logger.warning(f"[{self.source_id}] Skipping tick: {e}")
            return []
        except Exception as e:
            self._skip(str(e))
            logger.error(f"[{self.source_id}] Unexpected fetch error: {e}", exc_info=True)
            return []

        self.state = PollerState.DELIVERING
        delivered: list[Reading] = []
        for reading in readings:
            try:
                await self.sink.save(reading)
            except SinkError as e:
                self._skip(str(e))
                logger.error(f"[{self.source_id}] Failed to save {reading.kind.value}: {e}")
                break
            except Exception as e:
                self._skip(str(e))
                logger.error(f"[{self.source_id}] Unexpected sink error: {e}", exc_info=True)
                break
            delivered.append(reading)

        self.delivered_count += len(delivered)
        logger.debug(f"[{self.source_id}] Tick {self.tick_count}: {len(delivered)} reading(s)")
        return delivered

    def _skip(self, error: str) -> None:
        self.state = PollerState.SKIPPING
        self.error_count += 1
        self.last_error = error

    def get_status(self) -> dict:
        """Counters describing this poller"""
        return {
            "source_id": self.source_id,
            "state": self.state.value,
            "interval": self.interval,
            "ticks": self.tick_count,
            "errors": self.error_count,
            "delivered": self.delivered_count,
            "skipped_ticks": self.skipped_ticks,
            "last_error": self.last_error,
        }
