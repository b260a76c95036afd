from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from tsproxy.common.config import Settings
from tsproxy.common.errors import UpstreamReadError, UpstreamRequestError, UpstreamUnavailable

log = logging.getLogger(__name__)

API_KEY_HEADER = "X-TYPESENSE-API-KEY"


@dataclass(frozen=True)
class UpstreamResponse:
    status_code: int
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def _describe(e: Exception) -> str:
    return str(e) or e.__class__.__name__


class TypesenseClient:
    """Thin async client for the Typesense documents search API.

    One shared httpx.AsyncClient serves every request. The configured timeout
    is a single deadline for the whole call: sending, waiting for headers and
    reading the body all count against it. No retries are attempted.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = settings.upstream_base_url
        self.timeout_seconds = settings.upstream_timeout_seconds
        self._client = httpx.AsyncClient(
            headers={API_KEY_HEADER: settings.api_key},
            timeout=httpx.Timeout(settings.upstream_timeout_seconds),
            transport=transport,
        )

    @property
    def timeout(self) -> httpx.Timeout:
        return self._client.timeout

    async def aclose(self) -> None:
        await self._client.aclose()

    def search_url(self, collection: str) -> str:
        return f"{self.base_url}/collections/{quote(collection, safe='')}/documents/search"

    async def get(self, url: str) -> UpstreamResponse:
        deadline = time.monotonic() + self.timeout_seconds

        try:
            request = self._client.build_request("GET", url)
        except httpx.InvalidURL as e:
            raise UpstreamRequestError(_describe(e)) from e

        try:
            response = await asyncio.wait_for(self._client.send(request, stream=True), _remaining(deadline))
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(f"no response within {self.timeout_seconds}s") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(_describe(e)) from e

        try:
            body = await asyncio.wait_for(response.aread(), _remaining(deadline))
        except asyncio.TimeoutError as e:
            raise UpstreamReadError(f"body not read within {self.timeout_seconds}s") from e
        except httpx.HTTPError as e:
            raise UpstreamReadError(_describe(e)) from e
        finally:
            await response.aclose()

        return UpstreamResponse(status_code=response.status_code, body=body)


def _remaining(deadline: float) -> float:
    return max(deadline - time.monotonic(), 0.0)
