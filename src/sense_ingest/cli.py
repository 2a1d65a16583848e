"""Command-line interface for sense-ingest"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from sense_ingest import __version__


def setup_logging(level: str, log_file: Optional[str]) -> None:
    """Configure logging handlers"""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    # Add file handler if log file is specified and writable
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except PermissionError:
            print(
                f"Warning: Cannot write to {log_file}, logging to stdout only",
                file=sys.stderr,
            )

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sense-ingest",
        description="Poll Nature Remo, a CO2 sensor and a SwitchBot meter, and store the readings",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        help="Path to config file (default: auto-detect)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Scan once, poll every source once and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log readings instead of writing them to Redis",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


async def async_main(argv: Optional[list[str]] = None) -> int:
    """Async main entry point"""
    args = build_parser().parse_args(argv)

    from sense_ingest.config import load_config
    from sense_ingest.context import AppContext
    from sense_ingest.errors import StartupError
    from sense_ingest.sink import LogSink, PersistenceSink, RedisSink, connect_redis

    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.config)
    except StartupError as e:
        setup_logging("DEBUG" if args.verbose else "INFO", None)
        logger.error(f"Fatal: {e}")
        return 1

    log_level = "DEBUG" if args.verbose else config.logging.level
    setup_logging(log_level, config.logging.file or None)

    logger.info("=" * 50)
    logger.info(f"Starting sense-ingest {__version__}")
    logger.info("=" * 50)

    sink: Optional[PersistenceSink] = None
    try:
        if args.dry_run:
            sink = LogSink()
        else:
            redis = await connect_redis(config.redis.url)
            sink = RedisSink(redis, key_prefix=config.redis.key_prefix)

        context = AppContext.create(config, sink=sink)
        await context.start(run_loops=not args.once)
    except StartupError as e:
        logger.error(f"Fatal: {e}")
        if sink is not None:
            await sink.close()
        return 1

    if args.once:
        try:
            await context.run_once()
        finally:
            await context.shutdown()
        return 0

    loop = asyncio.get_running_loop()

    def signal_handler(sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}, initiating graceful shutdown...")
        context.request_stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler, sig)

    try:
        await context.wait()
        return 0
    finally:
        logger.info("Shutting down...")
        await context.shutdown()
        logger.info("Cleanup complete")


def main() -> int:
    """Main entry point - wraps async_main()"""
    return asyncio.run(async_main())


if __name__ == "__main__":
    sys.exit(main())
