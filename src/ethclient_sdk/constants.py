"""Constants for the ethclient SDK.

This module defines the constant values used across the SDK, including
ABI encoding sizes, unit scales, confirmation polling defaults and
network settings.
"""

# ABI Encoding Constants
SELECTOR_LENGTH = 4
SELECTOR_HEX_LENGTH = SELECTOR_LENGTH * 2
REVERT_SELECTOR = "0x08c379a0"  # Error(string)

# Unit Constants
WEI_PER_ETHER = 10**18

# Confirmation Polling
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_MAX_POLL_ATTEMPTS = 31  # first check + 30 retries

# Receipt status values
RECEIPT_STATUS_FAILED = 0
RECEIPT_STATUS_SUCCEEDED = 1

# Network Constants
PROVIDER_TIMEOUT_SECONDS = 30
ALLOWED_RPC_SCHEMES = ("http", "https")

# Environment variables
ENV_RPC_URL = "ETHCLIENT_RPC_URL"
ENV_PRIVATE_KEY = "ETHCLIENT_PRIVATE_KEY"
ENV_TIMEOUT = "ETHCLIENT_TIMEOUT"
ENV_POLL_INTERVAL = "ETHCLIENT_POLL_INTERVAL"
ENV_POLL_MAX_ATTEMPTS = "ETHCLIENT_POLL_MAX_ATTEMPTS"

__all__ = [
    "SELECTOR_LENGTH",
    "SELECTOR_HEX_LENGTH",
    "REVERT_SELECTOR",
    "WEI_PER_ETHER",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_MAX_POLL_ATTEMPTS",
    "RECEIPT_STATUS_FAILED",
    "RECEIPT_STATUS_SUCCEEDED",
    "PROVIDER_TIMEOUT_SECONDS",
    "ALLOWED_RPC_SCHEMES",
    "ENV_RPC_URL",
    "ENV_PRIVATE_KEY",
    "ENV_TIMEOUT",
    "ENV_POLL_INTERVAL",
    "ENV_POLL_MAX_ATTEMPTS",
]
