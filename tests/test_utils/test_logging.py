import logging

import pytest

from ethclient_sdk.utils.logging import (
    ROOT_LOGGER_NAME,
    configure_logging,
    disable_logging,
    get_logger,
    set_level,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_loggers_nest_under_sdk_namespace():
    assert get_logger("ethclient_sdk.rpc").name == "ethclient_sdk.rpc"
    assert get_logger("myapp").name == "ethclient_sdk.myapp"
    assert get_logger().name == ROOT_LOGGER_NAME


def test_configure_replaces_previous_handler():
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record):
            records.append(record)

    configure_logging(level="DEBUG", handler=ListHandler())
    configure_logging(level="DEBUG", handler=ListHandler())

    configured = [h for h in logging.getLogger(ROOT_LOGGER_NAME).handlers if isinstance(h, ListHandler)]
    assert len(configured) == 1

    get_logger("ethclient_sdk.test").debug("hello", extra={"tx_hash": "0xabc"})
    assert records[-1].tx_hash == "0xabc"


def test_disable_silences_child_loggers(caplog):
    caplog.set_level(logging.INFO)
    disable_logging()
    get_logger("ethclient_sdk.confirmation").warning("hidden")
    assert "hidden" not in caplog.text

    set_level("INFO")
    get_logger("ethclient_sdk.confirmation").warning("shown")
    assert "shown" in caplog.text
