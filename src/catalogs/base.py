"""Shared HTTP plumbing for the remote catalog clients."""
from __future__ import annotations

import logging
from typing import Any, Collection, Iterator, List, Mapping, Optional, Sequence, TypeVar

import httpx

from packutils.errors import NetworkError
from packutils.logging import get_logger

T = TypeVar("T")
LOGGER = get_logger(__name__)


class CatalogClient:
    """Base class owning an :class:`httpx.AsyncClient` for one remote catalog.

    Every non-success response becomes a :class:`NetworkError` unless the
    caller lists its status in ``allow_status``. Nothing is retried.
    """

    name: str = "catalog"

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
        batch_size: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.batch_size = batch_size
        self.logger = logger or LOGGER
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"accept": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, str]] = None,
        allow_status: Collection[int] = (),
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, json=json, params=params)
        except httpx.HTTPError as exc:
            raise NetworkError(f"{self.name} {method} {url} failed: {exc}") from exc
        if response.status_code in allow_status:
            return response
        if response.is_error:
            raise NetworkError(
                f"{self.name} {method} {url}: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response

    async def _json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._request(method, url, **kwargs)
        return self._decode(response)

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(
                f"{self.name} {response.request.method} {response.request.url}: invalid JSON body"
            ) from exc

    def _batches(self, items: Sequence[T]) -> Iterator[List[T]]:
        """Split ``items`` per ``batch_size``; ``0`` sends everything in one call."""

        if not self.batch_size or len(items) <= self.batch_size:
            yield list(items)
            return
        for start in range(0, len(items), self.batch_size):
            yield list(items[start : start + self.batch_size])
