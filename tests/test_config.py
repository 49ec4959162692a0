from pathlib import Path

import pytest

from ethclient_sdk import ClientConfig, EthClient, PollConfig, load_private_key
from ethclient_sdk.errors import ConnectionSetupError, ValidationError

from .conftest import TEST_ADDRESS, TEST_PRIVATE_KEY, FakeLedger


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "ETHCLIENT_RPC_URL",
        "ETHCLIENT_PRIVATE_KEY",
        "ETHCLIENT_TIMEOUT",
        "ETHCLIENT_POLL_INTERVAL",
        "ETHCLIENT_POLL_MAX_ATTEMPTS",
    ):
        # setenv first so monkeypatch also undoes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults():
    config = ClientConfig(rpc_url="http://127.0.0.1:8545")
    assert config.timeout == 30
    assert config.poll == PollConfig()


def test_with_rpc_url():
    config = ClientConfig(rpc_url="http://127.0.0.1:8545").with_rpc_url("https://rpc.example.org")
    assert config.rpc_url == "https://rpc.example.org"


@pytest.mark.parametrize("url", ["", "file:///etc/passwd", "wss://node"])
def test_rejects_bad_url(url):
    with pytest.raises(ConnectionSetupError):
        ClientConfig(rpc_url=url)


def test_rejects_bad_timeout():
    with pytest.raises(ValidationError):
        ClientConfig(rpc_url="http://127.0.0.1:8545", timeout=0)


def test_from_env(monkeypatch):
    monkeypatch.setenv("ETHCLIENT_RPC_URL", "https://rpc.example.org")
    monkeypatch.setenv("ETHCLIENT_TIMEOUT", "12")
    monkeypatch.setenv("ETHCLIENT_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("ETHCLIENT_POLL_MAX_ATTEMPTS", "10")

    config = ClientConfig.from_env()

    assert config.rpc_url == "https://rpc.example.org"
    assert config.timeout == 12
    assert config.poll == PollConfig(max_attempts=10, interval=0.5)


def test_from_env_missing_url():
    with pytest.raises(ConnectionSetupError):
        ClientConfig.from_env()


def test_from_env_bad_number(monkeypatch):
    monkeypatch.setenv("ETHCLIENT_RPC_URL", "https://rpc.example.org")
    monkeypatch.setenv("ETHCLIENT_TIMEOUT", "soon")
    with pytest.raises(ValidationError):
        ClientConfig.from_env()


def test_dotenv_file(tmp_path: Path, monkeypatch):
    env = tmp_path / ".env"
    env.write_text(
        "ETHCLIENT_RPC_URL=https://rpc.example.org\n"
        f"ETHCLIENT_PRIVATE_KEY={TEST_PRIVATE_KEY[2:]}\n",
        encoding="utf-8",
    )

    assert ClientConfig.from_env(env).rpc_url == "https://rpc.example.org"
    assert load_private_key(env) == TEST_PRIVATE_KEY


def test_load_private_key_missing():
    with pytest.raises(ValidationError):
        load_private_key()


def test_client_from_env(monkeypatch):
    monkeypatch.setenv("ETHCLIENT_RPC_URL", "https://rpc.example.org")
    monkeypatch.setenv("ETHCLIENT_PRIVATE_KEY", TEST_PRIVATE_KEY)

    client = EthClient.from_env(rpc=FakeLedger())

    assert client.address == TEST_ADDRESS
    assert client.engine.poll_config == PollConfig()
