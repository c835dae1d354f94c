"""
HTTP transport for push requests
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional

import aiohttp

from . import __version__
from .encoding import EncodedPayload
from .exceptions import TransportError


@dataclass(frozen=True)
class TransportResponse:
    """Status and body returned by the endpoint"""

    status: int
    body: str = ""


class Transport(ABC):
    """Performs the network call for an encoded payload"""

    @abstractmethod
    async def post(self, url: str, payload: EncodedPayload) -> TransportResponse:
        """POST a payload, raising TransportError if the request cannot complete"""

    async def close(self) -> None:
        """Release network resources"""
        pass


class AiohttpTransport(Transport):
    """Transport backed by a lazily created aiohttp client session"""

    def __init__(
        self,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"User-Agent": f"loki-logging/{__version__}"}
        self.headers.update(headers or {})
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        """Create the session on first use, inside the running loop"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def post(self, url: str, payload: EncodedPayload) -> TransportResponse:
        headers = dict(self.headers)
        headers.update(payload.headers())

        session = self._get_session()
        try:
            async with session.post(url, data=payload.body, headers=headers) as resp:
                body = await resp.text(errors="replace")
                return TransportResponse(status=resp.status, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"unable to send an HTTP request: {e!r}") from e

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
