"""
Persistence sinks.

Every reading kind is stored as its own record stream of
{"value": number, "time": ISO-8601} records. The Redis sink keeps each
stream in a sorted set scored by observation time; storing the same record
twice is a no-op, which is how duplicate deliveries are absorbed.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .errors import SinkError, StartupError
from .models import Reading, ReadingKind

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "reading"


class PersistenceSink(ABC):
    """Stores readings. Implementations must be safe to call from any poller."""

    @abstractmethod
    async def save(self, reading: Reading) -> bool:
        """
        Store one reading.

        Returns:
            True if a new record was written, False if it was a duplicate

        Raises:
            SinkError: If the reading could not be stored
        """

    async def close(self) -> None:  # noqa: B027
        """Release the underlying connection."""


class LogSink(PersistenceSink):
    """Writes readings to the log only. Used for dry runs."""

    def __init__(self) -> None:
        self.saved: list[Reading] = []

    async def save(self, reading: Reading) -> bool:
        self.saved.append(reading)
        logger.info(f"{reading.kind.value}: {json.dumps(reading.to_record())}")
        return True


@retry(
    retry=retry_if_exception_type((aioredis.ConnectionError, OSError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)
async def _ping(client: aioredis.Redis) -> None:
    await client.ping()


async def connect_redis(url: str) -> aioredis.Redis:
    """
    Open a Redis connection and make sure it answers.

    Raises:
        StartupError: If Redis is unreachable after retries
    """
    client = aioredis.from_url(url, decode_responses=True)
    try:
        await _ping(client)
    except (RedisError, OSError) as e:
        await client.aclose()
        raise StartupError(f"Failed to connect to Redis at {url}: {e}") from e
    logger.info(f"Connected to Redis at {url}")
    return client


class RedisSink(PersistenceSink):
    """One sorted set per reading kind, keyed `<prefix>:<kind>`."""

    def __init__(self, redis: aioredis.Redis, key_prefix: str = DEFAULT_KEY_PREFIX):
        self._redis = redis
        self.key_prefix = key_prefix

    def key_for(self, kind: ReadingKind) -> str:
        return f"{self.key_prefix}:{kind.value}"

    async def save(self, reading: Reading) -> bool:
        key = self.key_for(reading.kind)
        member = json.dumps(reading.to_record())
        try:
            added = await self._redis.zadd(key, {member: reading.observed_at.timestamp()})
        except RedisError as e:
            raise SinkError(f"Failed to store {reading.kind.value} reading: {e}") from e

        if not added:
            logger.debug(f"Duplicate {reading.kind.value} record ignored: {member}")
            return False
        logger.debug(f"Stored {reading.kind.value} record: {member}")
        return True

    async def read_stream(self, kind: ReadingKind, limit: int = 100) -> list[dict[str, Any]]:
        """Most recent records of one kind, oldest first"""
        members = await self._redis.zrange(self.key_for(kind), -limit, -1)
        return [json.loads(m) for m in members]

    async def close(self) -> None:
        await self._redis.aclose()
