"""Shared pytest fixtures for session tests."""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import ec

from x402session.application.session.use_cases.pay import PayToolService
from x402session.application.session.use_cases.registry import ToolRegistry
from x402session.application.session.use_cases.router import SessionRouter
from x402session.application.session.use_cases.session_tools import (
    SessionToolService,
)
from x402session.crypto.signers import EcdsaMessageSigner, EthMessageSigner
from x402session.infrastructure.http.http_client import AsyncHttpTransport
from x402session.infrastructure.session.in_memory_session_store import (
    InMemorySessionStore,
)
from tests.fixtures import ManualClock, RemoteServer, TestPaymentClient

WALLET_ADDRESS = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"
# Well-known throwaway key, never funded.
TEST_ETH_PRIVATE_KEY = (
    "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
)
API = "https://api.example.com"


@pytest.fixture
def agent_key_pair() -> tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    """Generate an agent key pair for testing."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    return private_key, private_key.public_key()


@pytest.fixture
def ecdsa_signer(
    agent_key_pair: tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey],
) -> EcdsaMessageSigner:
    private_key, _ = agent_key_pair
    return EcdsaMessageSigner(private_key)


@pytest.fixture
def eth_signer() -> EthMessageSigner:
    return EthMessageSigner(TEST_ETH_PRIVATE_KEY)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> InMemorySessionStore:
    """Session store on a manual clock with the production TTL bounds."""
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def remote_server() -> RemoteServer:
    return RemoteServer()


@pytest_asyncio.fixture
async def transport(remote_server: RemoteServer) -> AsyncGenerator[AsyncHttpTransport, None]:
    """Real transport wired to the scripted remote server."""
    async with AsyncHttpTransport(transport=remote_server.transport) as t:
        yield t


@pytest.fixture
def payment_client(transport: AsyncHttpTransport) -> TestPaymentClient:
    return TestPaymentClient(transport)


@pytest.fixture
def router(
    store: InMemorySessionStore,
    transport: AsyncHttpTransport,
    payment_client: TestPaymentClient,
    ecdsa_signer: EcdsaMessageSigner,
) -> SessionRouter:
    return SessionRouter(
        store,
        transport,
        payment_client.factory,
        wallet_address=WALLET_ADDRESS,
        sign_message=ecdsa_signer,
    )


@pytest.fixture
def session_service(
    store: InMemorySessionStore,
    router: SessionRouter,
    transport: AsyncHttpTransport,
) -> SessionToolService:
    return SessionToolService(store, router, transport, chain_id=8453)


@pytest.fixture
def pay_service(store: InMemorySessionStore, router: SessionRouter) -> PayToolService:
    return PayToolService(store, router, chain_id=8453)


@pytest.fixture
def registry(
    pay_service: PayToolService, session_service: SessionToolService
) -> ToolRegistry:
    return ToolRegistry(pay_service, session_service)
