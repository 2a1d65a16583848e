"""
Application context for dependency injection.

Owns every long-lived component and the single shutdown event they share.
The radio cache is created here and handed to both the scanner and the meter
source, so there is no process-wide state.

Usage:
    config = load_config()
    context = AppContext.create(config, sink=RedisSink(redis))
    await context.start()
    await context.wait()      # until context.request_stop() / a signal
    await context.shutdown()
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

from .cache import SharedReadingCache
from .config import Config, build_descriptors
from .datasources import Co2DataSource, DataSource, MeterDataSource, RemoDataSource
from .devices.meter import RadioScanner
from .errors import StartupError
from .poller import SourcePoller
from .sink import PersistenceSink

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 15.0


@dataclass
class AppContext:
    """
    Application context containing all shared dependencies.

    Attributes:
        config: Application configuration loaded from YAML
        sink: Where every poller delivers its readings
        cache: Latest-value cache shared by the scanner and the meter source
        stop_event: Shutdown signal observed by every loop
        data_sources: Registered sources, one poller each
        scanner: BLE scanner feeding the cache (None without a meter source)
    """

    config: Config
    sink: PersistenceSink
    cache: SharedReadingCache = field(default_factory=SharedReadingCache)
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    data_sources: list[DataSource] = field(default_factory=list)
    scanner: Optional[RadioScanner] = None
    pollers: list[SourcePoller] = field(default_factory=list)
    _tasks: list[asyncio.Task] = field(default_factory=list, repr=False)
    _initialized: list[DataSource] = field(default_factory=list, repr=False)
    _started: bool = field(default=False, repr=False)

    @classmethod
    def create(
        cls,
        config: Config,
        sink: PersistenceSink,
        http_client: Optional[httpx.AsyncClient] = None,
        scanner_factory: Optional[Callable[..., Any]] = None,
    ) -> "AppContext":
        """
        Build the context and one data source per enabled config section.

        Args:
            config: Application configuration
            sink: Persistence sink shared by all pollers
            http_client: Client shared by the HTTP sources (default: one each)
            scanner_factory: BleakScanner replacement, mainly for tests

        Raises:
            StartupError: If a descriptor cannot be built (e.g. missing token)
        """
        context = cls(config=config, sink=sink)
        timeout = config.http.timeout

        for descriptor in build_descriptors(config):
            if descriptor.source_id == "remo":
                context.add_data_source(
                    RemoDataSource(descriptor, client=http_client, timeout=timeout)
                )
            elif descriptor.source_id == "co2":
                context.add_data_source(
                    Co2DataSource(descriptor, client=http_client, timeout=timeout)
                )
            elif descriptor.source_id == "meter":
                kwargs = {"scanner_factory": scanner_factory} if scanner_factory else {}
                context.scanner = RadioScanner(
                    descriptor.endpoint,
                    context.cache,
                    timeout=config.meter.scan_timeout,
                    scan_interval=config.meter.scan_interval,
                    **kwargs,
                )
                context.add_data_source(MeterDataSource(descriptor, context.cache))

        logger.debug(f"Created AppContext with {len(context.data_sources)} source(s)")
        return context

    def add_data_source(self, source: DataSource) -> "AppContext":
        """Add a data source (returns self for chaining)"""
        self.data_sources.append(source)
        logger.debug(f"Added data source: {source.get_metadata().name} (id={source.source_id})")
        return self

    async def start(self, run_loops: bool = True) -> None:
        """
        Initialize every source and the BLE adapter, then start the loops.

        Startup is all-or-nothing: the first failure shuts down whatever was
        already initialized and raises StartupError.

        Args:
            run_loops: Spawn the poller and scan tasks (False for --once)
        """
        if self._started:
            logger.warning("AppContext already started, ignoring start() call")
            return

        logger.info(f"Starting AppContext with {len(self.data_sources)} data source(s)...")
        try:
            for source in self.data_sources:
                await source.initialize()
                self._initialized.append(source)
                logger.info(f"✓ Initialized: {source.get_metadata().name}")
            if self.scanner is not None:
                await self.scanner.open()
            self.pollers = [
                SourcePoller(source, self.sink, self.stop_event) for source in self.data_sources
            ]
        except Exception as e:
            logger.error(f"✗ Startup failed: {e}")
            await self._shutdown_sources()
            if isinstance(e, StartupError):
                raise
            raise StartupError(str(e)) from e

        self._started = True

        if run_loops:
            for poller in self.pollers:
                self._tasks.append(
                    asyncio.create_task(poller.run(), name=f"poll-{poller.source_id}")
                )
            if self.scanner is not None:
                self._tasks.append(
                    asyncio.create_task(self.scanner.run(self.stop_event), name="scan-meter")
                )
        logger.info(f"AppContext started: {len(self.pollers)} poller(s)")

    async def run_once(self) -> None:
        """One scan window (if any) followed by one tick of every poller"""
        if self.scanner is not None:
            await self.scanner.scan_once(self.stop_event)
        for poller in self.pollers:
            await poller.tick()

    def request_stop(self) -> None:
        """Signal every loop to stop"""
        self.stop_event.set()

    async def wait(self) -> None:
        """Block until the stop event is set"""
        await self.stop_event.wait()

    async def shutdown(self) -> None:
        """
        Stop all loops, close sources and the sink.

        Safe to call multiple times or before start().
        """
        if not self._started:
            logger.debug("AppContext not started, nothing to shutdown")
            return

        logger.info("Shutting down AppContext...")
        self.stop_event.set()

        if self._tasks:
            done, pending = await asyncio.wait(self._tasks, timeout=SHUTDOWN_TIMEOUT)
            for task in pending:
                logger.warning(f"Task {task.get_name()} did not stop gracefully, cancelling")
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.error(f"Task {task.get_name()} failed: {task.exception()}")
            self._tasks.clear()

        await self._shutdown_sources()
        await self.sink.close()
        self._started = False
        logger.info("AppContext shutdown complete")

    async def _shutdown_sources(self) -> None:
        for source in self._initialized:
            try:
                await source.shutdown()
            except Exception as e:
                logger.error(f"✗ Error shutting down {source.source_id}: {e}")
        self._initialized.clear()

    @property
    def is_started(self) -> bool:
        return self._started

    def get_data_source(self, source_id: str) -> Optional[DataSource]:
        for source in self.data_sources:
            if source.source_id == source_id:
                return source
        return None

    def __repr__(self) -> str:
        sources = [s.source_id for s in self.data_sources]
        return f"AppContext(started={self._started}, sources={sources})"
