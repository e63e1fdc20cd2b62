"""FastAPI dependencies for the session tools API."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from ..application.session.use_cases.pay import PayToolService
from ..application.session.use_cases.registry import ToolRegistry
from ..application.session.use_cases.router import SessionRouter
from ..application.session.use_cases.session_tools import SessionToolService
from ..crypto.signers import MessageSigner, build_signer
from ..domain.session.session_store import SessionStore
from ..domain.shared.http_transport_protocol import HttpTransportProtocol
from ..domain.shared.payment_client_protocol import (
    PaymentClientFactory,
    PaymentClientOptions,
    PaymentClientProtocol,
)
from ..env import Settings, get_settings
from ..infrastructure.http.http_client import AsyncHttpTransport
from ..infrastructure.payment.x402_payment_client import X402PaymentClient
from ..infrastructure.session.in_memory_session_store import InMemorySessionStore
from ..infrastructure.wallet.wallet_client import AsyncWalletClient


@lru_cache
def get_session_store() -> SessionStore:
    """Process-wide session table."""
    settings = get_settings()
    return InMemorySessionStore(
        default_ttl_seconds=settings.session_ttl_seconds,
        min_ttl_seconds=settings.session_min_ttl_seconds,
        max_ttl_seconds=settings.session_max_ttl_seconds,
    )


@lru_cache
def get_transport() -> HttpTransportProtocol:
    """Shared outbound transport."""
    return AsyncHttpTransport()


@lru_cache
def get_wallet_client() -> AsyncWalletClient:
    settings = get_settings()
    return AsyncWalletClient(
        settings.wallet_service_url, timeout=settings.http_timeout_ms / 1000
    )


@lru_cache
def get_signer() -> MessageSigner:
    return build_signer(get_settings())


def get_payment_client_factory(
    settings: Settings = Depends(get_settings),
    transport: HttpTransportProtocol = Depends(get_transport),
    wallet: AsyncWalletClient = Depends(get_wallet_client),
) -> PaymentClientFactory:
    """Get a factory building one payment client per call."""

    def factory(options: PaymentClientOptions) -> PaymentClientProtocol:
        return X402PaymentClient(
            transport,
            wallet,
            wallet_address=settings.agent_wallet_address,
            chain_id=settings.chain_id,
            options=options,
        )

    return factory


def get_session_router(
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    transport: HttpTransportProtocol = Depends(get_transport),
    payment_client_factory: PaymentClientFactory = Depends(get_payment_client_factory),
    signer: MessageSigner = Depends(get_signer),
) -> SessionRouter:
    """Get session router."""
    return SessionRouter(
        store,
        transport,
        payment_client_factory,
        wallet_address=settings.agent_wallet_address,
        sign_message=signer,
    )


def get_tool_registry(
    settings: Settings = Depends(get_settings),
    store: SessionStore = Depends(get_session_store),
    transport: HttpTransportProtocol = Depends(get_transport),
    router: SessionRouter = Depends(get_session_router),
) -> ToolRegistry:
    """Get tool registry."""
    return ToolRegistry(
        PayToolService(store, router, chain_id=settings.chain_id),
        SessionToolService(
            store,
            router,
            transport,
            chain_id=settings.chain_id,
            default_ttl_seconds=settings.session_ttl_seconds,
        ),
    )
