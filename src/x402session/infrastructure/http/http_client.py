from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type
from types import TracebackType

import httpx

from ...domain.errors import RequestTimeoutError, TransportError
from ...domain.shared.http_transport_protocol import HttpResult, OutboundRequest

logger = logging.getLogger(__name__)


def to_http_result(resp: httpx.Response) -> HttpResult:
    """Snapshot an httpx response into a transport-neutral result."""
    return HttpResult(
        status_code=resp.status_code,
        reason_phrase=resp.reason_phrase,
        headers={k.lower(): v for k, v in resp.headers.items()},
        text=resp.text,
    )


class AsyncHttpClient:
    """Thin asynchronous HTTP client wrapper around httpx.AsyncClient.

    - Normalizes base URLs and paths.
    - Applies a default timeout.
    - Raises for non-successful responses.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def post(
        self,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        resp = await self._client.post(self._url(path), json=json, **kwargs)
        resp.raise_for_status()
        return resp

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()


class AsyncHttpTransport:
    """Plain outbound transport for arbitrary URLs.

    - Never raises for HTTP status codes.
    - Applies the per-request timeout.
    - Maps httpx failures to ``RequestTimeoutError`` / ``TransportError``.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            follow_redirects=True, transport=transport
        )

    async def send(self, url: str, request: OutboundRequest) -> HttpResult:
        try:
            resp = await self._client.request(
                request.method,
                url,
                headers=request.headers,
                content=request.body,
                timeout=request.timeout_ms / 1000,
            )
        except httpx.TimeoutException as e:
            logger.warning("Request to %s timed out after %dms", url, request.timeout_ms)
            raise RequestTimeoutError(request.timeout_ms) from e
        except httpx.RequestError as e:
            logger.warning("Request to %s failed: %s", url, e)
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e
        return to_http_result(resp)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpTransport":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
