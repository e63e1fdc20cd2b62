"""Scripted x402 resource server and wallet service built on httpx.MockTransport."""

from __future__ import annotations

import base64
import json
from typing import Optional

import httpx

USDC_BASE = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
RECIPIENT = "0x1111111111111111111111111111111111111111"


class RemoteServer:
    """Resource server that demands payment unless a session or payment proof is shown.

    Every path is paid except those in ``free_paths``. Session headers are
    honoured while ``honor_sessions`` is True. ``bodies`` replaces the JSON echo
    of a 200 for a given path. With ``advertise_requirements`` off, a 402 carries
    no payment requirements at all. Set ``raise_exc`` to make the next requests fail
    below HTTP.
    """

    def __init__(
        self,
        price: int = 1000,
        pay_to: str = RECIPIENT,
        asset: str = USDC_BASE,
        network: str = "eip155:8453",
        honor_sessions: bool = True,
        v2_header: bool = False,
    ) -> None:
        self.price = price
        self.pay_to = pay_to
        self.asset = asset
        self.network = network
        self.honor_sessions = honor_sessions
        self.v2_header = v2_header
        self.advertise_requirements = True
        self.free_paths: set[str] = set()
        # Canned 200 bodies served in place of the JSON echo, by path
        self.bodies: dict[str, str] = {}
        self.raise_exc: Optional[Exception] = None
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def requirements(self, url: str) -> dict:
        return {
            "x402Version": 2 if self.v2_header else 1,
            "error": "Payment required",
            "accepts": [
                {
                    "scheme": "exact",
                    "network": self.network,
                    "maxAmountRequired": str(self.price),
                    "resource": url,
                    "payTo": self.pay_to,
                    "asset": self.asset,
                    "maxTimeoutSeconds": 60,
                    "extra": {"name": "USD Coin", "version": "2"},
                }
            ],
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_exc is not None:
            raise self.raise_exc
        path = request.url.path
        if path in self.free_paths:
            return self._ok(path, {"path": path, "access": "free"})
        if self.honor_sessions and "x-session-token" in request.headers:
            return self._ok(
                path,
                {
                    "path": path,
                    "access": "session",
                    "session_id": request.headers.get("payment-session"),
                },
            )
        if "x-payment" in request.headers:
            return self._ok(path, {"path": path, "access": "payment"})

        if not self.advertise_requirements:
            return httpx.Response(402, text="Payment Required")
        requirements = self.requirements(str(request.url))
        if self.v2_header:
            encoded = base64.b64encode(json.dumps(requirements).encode()).decode()
            return httpx.Response(
                402, headers={"PAYMENT-REQUIRED": encoded}, json={"error": "Payment required"}
            )
        return httpx.Response(402, json=requirements)

    def _ok(self, path: str, echo: dict) -> httpx.Response:
        if path in self.bodies:
            return httpx.Response(200, text=self.bodies[path])
        return httpx.Response(200, json=echo)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


class WalletService:
    """Wallet service double that settles every payment it is asked for."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.payments: list[dict] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.path != "/payments":
            return httpx.Response(404, json={"detail": "Not Found"})
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"detail": "Spend limit exceeded"})
        body = json.loads(request.content)
        self.payments.append(body)
        n = len(self.payments)
        return httpx.Response(
            200,
            json={
                "tx_hash": "0x" + f"{n:064x}",
                "network": body["network"],
                "amount": int(body["amount"]),
                "payer": body["wallet_address"],
                "payload": {"signature": "0xfeed", "authorization": {"nonce": n}},
            },
        )
