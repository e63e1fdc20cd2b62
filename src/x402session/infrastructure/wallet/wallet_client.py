from __future__ import annotations

from typing import Optional, Type
from types import TracebackType

import httpx

from ...application.wallet.dtos import WalletPaymentReceiptDTO, WalletPaymentRequestDTO
from ...domain.errors import RequestTimeoutError, TransportError
from ..http.http_client import AsyncHttpClient


class AsyncWalletClient:
    """Asynchronous client for the external wallet service HTTP API.

    The wallet service owns balances and on-chain execution; this client only
    asks it to pay a quote and returns the receipt.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)

    async def pay(self, dto: WalletPaymentRequestDTO) -> WalletPaymentReceiptDTO:
        try:
            resp = await self._http.post("/payments", json=dto.model_dump())
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(int(self._timeout * 1000)) from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Wallet service rejected payment: {e.response.status_code} "
                f"{e.response.text[:200]}",
                url=str(e.request.url),
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"Could not reach wallet service at {self._base_url}: {e}"
            ) from e
        return WalletPaymentReceiptDTO.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncWalletClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
