"""Asynchronous spec fetcher backed by :class:`httpx.AsyncClient`.

:class:`SpecFetcher` is the transport collaborator of
:class:`~rpcspec.repository.SpecRepository`. It does not retry, cache or
cancel; timeouts come from :class:`~rpcspec.models.RequestConfig`. Failures
are raised as:

* :class:`~rpcspec.exceptions.SpecFetchError` -- non-success status or a
  network-level error (connection refused, DNS failure, timeout).
* :class:`~rpcspec.exceptions.SpecParseError` -- the body is not valid JSON.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from rpcspec.exceptions import SpecFetchError, SpecParseError
from rpcspec.models import RequestConfig

logger = logging.getLogger(__name__)


class SpecFetcher:
    """Fetch a JSON document with a single GET request.

    Can be used as an async context manager, in which case one
    :class:`httpx.AsyncClient` is shared by every :meth:`fetch_json` call
    made inside the block. Outside a block each call opens and closes its
    own client.

    Args:
        config: Timeout and SSL settings. Defaults to :class:`RequestConfig`.
        base_url: Base URL that relative spec URLs resolve against.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        async with SpecFetcher(base_url="http://localhost:8080") as fetcher:
            body = await fetcher.fetch_json("/spec.json")
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._base_url = base_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> SpecFetcher:
        self._client = self._make_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def fetch_json(self, url: str) -> Any:
        """GET *url* and return the decoded JSON body.

        Args:
            url: Absolute URL, or a path resolved against ``base_url``.

        Returns:
            The decoded JSON value (any JSON type).

        Raises:
            SpecFetchError: On a non-2xx status or a network-level failure.
            SpecParseError: If the body cannot be decoded as JSON.
        """
        if self._client is not None:
            response = await self._get(self._client, url)
        else:
            async with self._make_client() as client:
                response = await self._get(client, url)

        if not response.is_success:
            raise SpecFetchError(
                f"Failed to fetch spec: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise SpecParseError(str(exc)) from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _make_client(self) -> httpx.AsyncClient:
        kwargs: dict[str, Any] = {
            "timeout": self._config.timeout,
            "verify": self._config.verify_ssl,
            "follow_redirects": True,
        }
        if self._base_url:
            kwargs["base_url"] = self._base_url
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            return await client.get(url, headers={"Accept": "application/json"})
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise SpecFetchError(f"Failed to fetch spec: {exc}") from exc
