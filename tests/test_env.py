"""Unit tests for settings loading."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import ValidationError

from x402session.crypto.signers import EcdsaMessageSigner, EthMessageSigner, build_signer
from x402session.env import (
    DEFAULT_SESSION_TTL_SECONDS,
    MAX_SESSION_TTL_SECONDS,
    Settings,
    chain_name,
    load_settings,
    parse_ttl,
)

WALLET = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"
TEST_ETH_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

ENV_VARS = [
    "AGENT_WALLET_ADDRESS",
    "AGENT_SIGNER",
    "AGENT_PRIVATE_KEY",
    "AGENT_PRIVATE_KEY_PEM",
    "CHAIN_ID",
    "WALLET_SERVICE_URL",
    "SESSION_TTL_SECONDS",
    "SESSION_MIN_TTL_SECONDS",
    "SESSION_MAX_TTL_SECONDS",
    "HTTP_TIMEOUT_MS",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestParseTtl:
    """Test parse_ttl function."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, DEFAULT_SESSION_TTL_SECONDS),
            ("", DEFAULT_SESSION_TTL_SECONDS),
            ("abc", DEFAULT_SESSION_TTL_SECONDS),
            ("0", DEFAULT_SESSION_TTL_SECONDS),
            ("-30", DEFAULT_SESSION_TTL_SECONDS),
            ("120", 120),
            (" 7200 ", 7200),
            ("99999999", MAX_SESSION_TTL_SECONDS),
        ],
    )
    def test_parse_ttl(self, raw, expected: int) -> None:
        assert parse_ttl(raw) == expected


def test_chain_name() -> None:
    assert chain_name(8453) == "Base Mainnet"
    assert chain_name(84532) == "Base Sepolia"
    assert chain_name(999) == "Chain 999"


class TestLoadSettings:
    """Test load_settings function."""

    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("AGENT_WALLET_ADDRESS", WALLET)

        settings = load_settings()

        assert settings.agent_wallet_address == WALLET
        assert settings.chain_id == 8453
        assert settings.chain_name == "Base Mainnet"
        assert settings.session_ttl_seconds == 3600
        assert settings.wallet_service_url == "http://localhost:8080"

    def test_missing_wallet_address(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(ValueError, match="AGENT_WALLET_ADDRESS is required"):
            load_settings()

    def test_overrides(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("AGENT_WALLET_ADDRESS", WALLET)
        clean_env.setenv("CHAIN_ID", "84532")
        clean_env.setenv("SESSION_TTL_SECONDS", "900")
        clean_env.setenv("WALLET_SERVICE_URL", "https://wallet.internal/")
        clean_env.setenv("LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.chain_name == "Base Sepolia"
        assert settings.session_ttl_seconds == 900
        assert settings.wallet_service_url == "https://wallet.internal"
        assert settings.log_level == "DEBUG"

    def test_unsupported_chain(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("AGENT_WALLET_ADDRESS", WALLET)
        clean_env.setenv("CHAIN_ID", "1")
        with pytest.raises(ValidationError, match="CHAIN_ID must be one of"):
            load_settings()


class TestSettingsValidation:
    """Test Settings field validation."""

    @pytest.mark.parametrize("address", ["", "0x123", "AbCdEf0123456789abcdef0123456789ABCDEF01aa"])
    def test_invalid_wallet_address(self, address: str) -> None:
        with pytest.raises(ValidationError):
            Settings(agent_wallet_address=address)

    def test_invalid_private_key(self) -> None:
        with pytest.raises(ValidationError):
            Settings(agent_wallet_address=WALLET, agent_private_key="0xabc")

    def test_private_key_hidden_from_repr(self) -> None:
        settings = Settings(agent_wallet_address=WALLET, agent_private_key=TEST_ETH_PRIVATE_KEY)
        assert TEST_ETH_PRIVATE_KEY not in repr(settings)

    def test_ttl_bounds(self) -> None:
        with pytest.raises(ValidationError):
            Settings(
                agent_wallet_address=WALLET,
                session_min_ttl_seconds=600,
                session_max_ttl_seconds=60,
            )

    def test_invalid_wallet_service_url(self) -> None:
        with pytest.raises(ValidationError):
            Settings(agent_wallet_address=WALLET, wallet_service_url="ftp://wallet")


class TestBuildSigner:
    """Test build_signer function."""

    def test_eth_signer(self) -> None:
        settings = Settings(agent_wallet_address=WALLET, agent_private_key=TEST_ETH_PRIVATE_KEY)
        signer = build_signer(settings)
        assert isinstance(signer, EthMessageSigner)
        assert signer.address.startswith("0x")

    def test_eth_signer_requires_key(self) -> None:
        with pytest.raises(ValueError, match="AGENT_PRIVATE_KEY is required"):
            build_signer(Settings(agent_wallet_address=WALLET))

    def test_ecdsa_signer_from_pem(self) -> None:
        pem = (
            ec.generate_private_key(ec.SECP256R1())
            .private_bytes(
                serialization.Encoding.PEM,
                serialization.PrivateFormat.PKCS8,
                serialization.NoEncryption(),
            )
            .decode()
        )
        settings = Settings(
            agent_wallet_address=WALLET, agent_signer="ecdsa", agent_private_key_pem=pem
        )
        assert isinstance(build_signer(settings), EcdsaMessageSigner)

    def test_ecdsa_signer_requires_pem(self) -> None:
        settings = Settings(agent_wallet_address=WALLET, agent_signer="ecdsa")
        with pytest.raises(ValueError, match="AGENT_PRIVATE_KEY_PEM is required"):
            build_signer(settings)
