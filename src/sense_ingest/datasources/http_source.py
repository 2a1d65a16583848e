"""Shared plumbing for data sources polled over HTTP."""

from typing import Optional

import httpx

from ..errors import FetchError
from ..log import get_structured_logger
from ..models import SourceDescriptor
from .base import DataSource

logger = get_structured_logger(__name__, component="http")

DEFAULT_TIMEOUT = 10.0


class HttpDataSource(DataSource):
    """
    Base class for sources fetched with a single GET request per tick.

    The client is created in initialize() unless one is injected, in which
    case the caller keeps ownership of it.
    """

    def __init__(
        self,
        descriptor: SourceDescriptor,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        super().__init__(descriptor)
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def initialize(self) -> None:
        """Create the HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        logger.info("HTTP data source initialized", source=self.source_id)

    def request_headers(self) -> dict[str, str]:
        """Headers sent with every request. Override to add credentials."""
        return {"Accept": "application/json"}

    async def _get(self) -> bytes:
        """
        GET the descriptor endpoint and return the raw body.

        Raises:
            FetchError: On transport errors, timeouts, or non-2xx statuses
        """
        if self._client is None:
            raise FetchError(f"{self.source_id}: HTTP client not initialized")

        url = self.descriptor.endpoint
        try:
            response = await self._client.get(url, headers=self.request_headers())
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(f"{self.source_id}: timeout requesting {url}") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"{self.source_id}: HTTP {e.response.status_code} from {url}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"{self.source_id}: request to {url} failed: {e}") from e

        logger.debug("Fetched", source=self.source_id, status_code=response.status_code)
        return response.content

    async def shutdown(self) -> None:
        """Close the HTTP client if this source created it"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP data source shut down", source=self.source_id)
