"""Remote lookup clients.

A lookup performs exactly one request for one server ID and hands back the raw
status and body. Interpreting the body is left to the caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import TracebackType

import httpx

from guild_checker import __version__
from guild_checker.checker.errors import LookupTransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LookupResponse:
    """Raw response for a single lookup."""

    status_code: int
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class LookupClient(ABC):
    """Abstract base class for lookup backends."""

    @abstractmethod
    async def fetch(self, identifier: str) -> LookupResponse:
        """Look up a single server ID.

        Args:
            identifier: Server ID to look up.

        Returns:
            Status code and body text of the response.

        Raises:
            LookupTransportError: If no response could be obtained.
        """

    async def aclose(self) -> None:
        """Release any resources held by the client."""

    async def __aenter__(self) -> LookupClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


class HttpLookupClient(LookupClient):
    """Lookup client backed by a shared `httpx.AsyncClient`.

    Requests go to `{base_url}/servers/{identifier}`. There is no automatic
    retry.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        max_connections: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        limits = httpx.Limits(
            max_connections=max(max_connections, 1),
            max_keepalive_connections=max(max_connections, 1),
        )
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=limits,
            headers={"User-Agent": f"guild-checker/{__version__}"},
            transport=transport,
        )

    def url_for(self, identifier: str) -> str:
        return f"{self.base_url}/servers/{identifier}"

    async def fetch(self, identifier: str) -> LookupResponse:
        url = self.url_for(identifier)
        logger.info("Requesting", extra={"identifier": identifier, "url": url})
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise LookupTransportError(identifier, f"couldn't contact lookup api: {e}") from e
        return LookupResponse(status_code=response.status_code, text=response.text)

    async def aclose(self) -> None:
        await self._client.aclose()
