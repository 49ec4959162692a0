import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .constants import (
    ALLOWED_RPC_SCHEMES,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    ENV_POLL_INTERVAL,
    ENV_POLL_MAX_ATTEMPTS,
    ENV_PRIVATE_KEY,
    ENV_RPC_URL,
    ENV_TIMEOUT,
    PROVIDER_TIMEOUT_SECONDS,
)
from .errors import ConnectionSetupError, ValidationError
from .utils.polling import PollConfig

__all__ = ["ClientConfig", "validate_rpc_url", "load_private_key"]


def validate_rpc_url(url: str) -> str:
    """Check that an endpoint URL is usable with the HTTP provider.

    Raises:
        ConnectionSetupError: If the URL is empty, not http(s) or has no host
    """
    if not url or not isinstance(url, str):
        raise ConnectionSetupError("RPC endpoint must be a non-empty string")
    parsed = urlparse(url)
    if parsed.scheme not in ALLOWED_RPC_SCHEMES:
        raise ConnectionSetupError(
            f"RPC endpoint {url!r} must use http or https",
            details={"endpoint": url},
        )
    if not parsed.hostname:
        raise ConnectionSetupError(
            f"RPC endpoint {url!r} has no hostname",
            details={"endpoint": url},
        )
    return url


@dataclass
class ClientConfig:
    rpc_url: str
    timeout: int = PROVIDER_TIMEOUT_SECONDS
    poll: PollConfig = field(default_factory=PollConfig)

    def __post_init__(self) -> None:
        validate_rpc_url(self.rpc_url)
        if self.timeout <= 0:
            raise ValidationError("timeout must be positive")

    def with_rpc_url(self, rpc_url: str) -> "ClientConfig":
        return replace(self, rpc_url=rpc_url)

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "ClientConfig":
        """Build a config from ETHCLIENT_* environment variables.

        Args:
            env_path: Optional .env file loaded before reading the environment

        Raises:
            ConnectionSetupError: If ETHCLIENT_RPC_URL is missing or invalid
            ValidationError: If a numeric variable cannot be parsed
        """
        if env_path is not None and env_path.exists():
            load_dotenv(env_path, override=True)

        rpc_url = os.environ.get(ENV_RPC_URL)
        if not rpc_url:
            raise ConnectionSetupError(f"{ENV_RPC_URL} is not set")

        try:
            timeout = int(os.environ.get(ENV_TIMEOUT, PROVIDER_TIMEOUT_SECONDS))
            poll = PollConfig(
                max_attempts=int(os.environ.get(ENV_POLL_MAX_ATTEMPTS, DEFAULT_MAX_POLL_ATTEMPTS)),
                interval=float(os.environ.get(ENV_POLL_INTERVAL, DEFAULT_POLL_INTERVAL_SECONDS)),
            )
        except ValueError as e:
            raise ValidationError(f"Invalid numeric setting in environment: {e}") from e

        return cls(rpc_url=rpc_url, timeout=timeout, poll=poll)


def load_private_key(env_path: Optional[Path] = None) -> str:
    """Load the session private key from the environment or a .env file.

    Returns:
        0x-prefixed hex private key

    Raises:
        ValidationError: If ETHCLIENT_PRIVATE_KEY is not set
    """
    if env_path is not None and env_path.exists():
        load_dotenv(env_path, override=True)

    private_key = os.environ.get(ENV_PRIVATE_KEY)
    if not private_key:
        raise ValidationError(f"{ENV_PRIVATE_KEY} is not set")

    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    return private_key
