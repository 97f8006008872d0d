"""
HTTP transport: one bounded, cancellable exchange per call.

Each ``send`` runs under its own ``asyncio.timeout`` deadline. A retry sequence
is therefore not bounded by the first attempt's deadline; callers needing an
overall deadline wrap the whole operation in their own ``asyncio.timeout``.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from tenx_cards.llm.builder import build_headers
from tenx_cards.llm.classifier import classify_exception
from tenx_cards.llm.config import ServiceConfig


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and body text of one completed exchange."""

    status_code: int
    headers: Mapping[str, str]
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTransport:
    """
    Issues single HTTP exchanges against the configured base URL.

    An injected ``httpx.AsyncClient`` is shared and left open on ``aclose``;
    otherwise the transport creates and owns one.
    """

    def __init__(self, config: ServiceConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout)
        return self._client

    def url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def send(
        self,
        method: str,
        path: str,
        json: Any = None,
    ) -> TransportResponse:
        """
        Perform one exchange.

        Raises:
            NetworkError: On connection failure, an undecodable body, or when
                the per-attempt deadline expires
        """
        client = self._get_client()
        try:
            async with asyncio.timeout(self._config.timeout):
                response = await client.request(
                    method,
                    self.url(path),
                    json=json,
                    headers=build_headers(self._config),
                )
        except (TimeoutError, httpx.RequestError) as exc:
            raise classify_exception(
                exc, secret=self._config.api_key.get_secret_value()
            ) from exc

        return TransportResponse(
            status_code=response.status_code,
            headers=response.headers,
            text=response.text,
        )

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
