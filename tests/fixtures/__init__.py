"""Test doubles for the session subsystem."""

from .manual_clock import ManualClock
from .remote_server import RECIPIENT, USDC_BASE, RemoteServer, WalletService
from .test_payment_client import TestPaymentClient

__all__ = [
    "ManualClock",
    "RECIPIENT",
    "RemoteServer",
    "TestPaymentClient",
    "USDC_BASE",
    "WalletService",
]
