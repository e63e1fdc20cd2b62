from __future__ import annotations

import logging

import uvicorn

from .env import get_settings
from .application.session.formatting import format_ttl

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Attach one formatted stream handler to the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)


def main() -> None:
    """Main entry point for the session tools API."""

    settings = get_settings()
    configure_logging(settings.log_level)

    print(f"Starting {settings.app_name} v{settings.app_version}")
    print(f"Wallet: {settings.agent_wallet_address}")
    print(f"Network: {settings.chain_name} ({settings.chain_id})")
    print(
        f"Default session TTL: {settings.session_ttl_seconds}s "
        f"({format_ttl(settings.session_ttl_seconds)})"
    )
    print(f"API will be available at: http://{settings.api_host}:{settings.api_port}")
    print(f"API Documentation: http://{settings.api_host}:{settings.api_port}/docs")

    # Sessions live in this process, so a single worker only.
    uvicorn.run(
        "x402session.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
        workers=1,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
