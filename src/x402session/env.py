from __future__ import annotations

import os
import re
from functools import lru_cache
from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_SESSION_TTL_SECONDS = 3600
MIN_SESSION_TTL_SECONDS = 60
MAX_SESSION_TTL_SECONDS = 30 * 24 * 60 * 60

SUPPORTED_CHAINS = {
    8453: "Base Mainnet",
    84532: "Base Sepolia",
}


def chain_name(chain_id: int) -> str:
    return SUPPORTED_CHAINS.get(chain_id, f"Chain {chain_id}")


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


class Settings(BaseModel):
    """Typed application settings built from environment variables."""

    # Agent wallet
    agent_wallet_address: str
    agent_signer: Literal["eth", "ecdsa"] = "eth"
    agent_private_key: Optional[str] = Field(None, repr=False)
    agent_private_key_pem: Optional[str] = Field(None, repr=False)
    chain_id: int = 8453
    wallet_service_url: str = "http://localhost:8080"

    # Sessions
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    session_min_ttl_seconds: int = MIN_SESSION_TTL_SECONDS
    session_max_ttl_seconds: int = MAX_SESSION_TTL_SECONDS
    http_timeout_ms: int = Field(30000, ge=1000, le=60000)

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_cors_origins: list[str] = ["*"]

    # Application settings
    app_name: str = "x402 Session"
    app_version: str = "1.1.0"
    log_level: str = "INFO"

    @field_validator("agent_wallet_address")
    @classmethod
    def validate_agent_wallet_address(cls, v: str) -> str:
        if not _ADDRESS_RE.match(v):
            raise ValueError(
                "AGENT_WALLET_ADDRESS must be a valid Ethereum address (0x...)"
            )
        return v

    @field_validator("agent_private_key")
    @classmethod
    def validate_agent_private_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _PRIVATE_KEY_RE.match(v):
            raise ValueError(
                "AGENT_PRIVATE_KEY must be a 0x-prefixed 32-byte hex string"
            )
        return v

    @field_validator("chain_id")
    @classmethod
    def validate_chain_id(cls, v: int) -> int:
        if v not in SUPPORTED_CHAINS:
            supported = ", ".join(str(c) for c in SUPPORTED_CHAINS)
            raise ValueError(f"CHAIN_ID must be one of {supported}")
        return v

    @field_validator("wallet_service_url")
    @classmethod
    def validate_wallet_service_url(cls, v: str) -> str:
        if not v:
            raise ValueError("Wallet service URL cannot be empty")
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("Wallet service URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValueError("Wallet service URL must include a host")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level

    @model_validator(mode="after")
    def validate_ttl_bounds(self) -> "Settings":
        if self.session_min_ttl_seconds < 1:
            raise ValueError("SESSION_MIN_TTL_SECONDS must be at least 1")
        if self.session_max_ttl_seconds < self.session_min_ttl_seconds:
            raise ValueError(
                "SESSION_MAX_TTL_SECONDS must not be below SESSION_MIN_TTL_SECONDS"
            )
        return self

    @property
    def chain_name(self) -> str:
        return chain_name(self.chain_id)


def parse_ttl(raw: Optional[str], maximum: int = MAX_SESSION_TTL_SECONDS) -> int:
    """Default TTL from an env string: garbage or non-positive falls back, big values cap."""
    if not raw:
        return DEFAULT_SESSION_TTL_SECONDS
    try:
        parsed = int(raw.strip())
    except ValueError:
        return DEFAULT_SESSION_TTL_SECONDS
    if parsed <= 0:
        return DEFAULT_SESSION_TTL_SECONDS
    return min(parsed, maximum)


def load_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    wallet_address = os.environ.get("AGENT_WALLET_ADDRESS")
    if not wallet_address:
        raise ValueError("AGENT_WALLET_ADDRESS is required")
    max_ttl = int(
        os.environ.get("SESSION_MAX_TTL_SECONDS", str(MAX_SESSION_TTL_SECONDS))
    )
    return Settings(
        agent_wallet_address=wallet_address,
        agent_signer=os.environ.get("AGENT_SIGNER", "eth").lower(),
        agent_private_key=os.environ.get("AGENT_PRIVATE_KEY") or None,
        agent_private_key_pem=os.environ.get("AGENT_PRIVATE_KEY_PEM") or None,
        chain_id=int(os.environ.get("CHAIN_ID", "8453")),
        wallet_service_url=os.environ.get(
            "WALLET_SERVICE_URL", "http://localhost:8080"
        ),
        session_ttl_seconds=parse_ttl(os.environ.get("SESSION_TTL_SECONDS"), max_ttl),
        session_min_ttl_seconds=int(
            os.environ.get("SESSION_MIN_TTL_SECONDS", str(MIN_SESSION_TTL_SECONDS))
        ),
        session_max_ttl_seconds=max_ttl,
        http_timeout_ms=int(os.environ.get("HTTP_TIMEOUT_MS", "30000")),
        api_host=os.environ.get("API_HOST", "0.0.0.0"),
        api_port=int(os.environ.get("API_PORT", "8000")),
        api_debug=os.environ.get("API_DEBUG", "false").lower() == "true",
        api_cors_origins=os.environ.get("API_CORS_ORIGINS", "*").split(","),
        app_name=os.environ.get("APP_NAME", "x402 Session"),
        app_version=os.environ.get("APP_VERSION", "1.1.0"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return load_settings()
