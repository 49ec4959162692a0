"""
Structured logging helpers for the ethclient SDK.

The SDK logs through the standard library under the ``ethclient_sdk``
logger namespace. A NullHandler is installed so that nothing is emitted
until the application calls :func:`configure_logging` or attaches its
own handlers.

Example:
    ```python
    from ethclient_sdk.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG")
    _logger = get_logger(__name__)
    _logger.info("Broadcasting", extra={"tx_hash": "0x..."})
    ```
"""

from __future__ import annotations

import logging
from typing import Optional, Union

ROOT_LOGGER_NAME = "ethclient_sdk"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_root = logging.getLogger(ROOT_LOGGER_NAME)
_root.addHandler(logging.NullHandler())


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger inside the SDK namespace.

    Args:
        name: Module name (usually ``__name__``). Names outside the
            ``ethclient_sdk`` namespace are nested under it.

    Returns:
        Configured ``logging.Logger``
    """
    if not name or name == ROOT_LOGGER_NAME:
        return _root
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Attach a handler to the SDK root logger.

    Calling this more than once replaces the previously configured
    handler instead of stacking duplicates.

    Args:
        level: Log level (name or number)
        fmt: Format string for the default stream handler
        handler: Custom handler (default: ``logging.StreamHandler``)

    Returns:
        The SDK root logger
    """
    for existing in list(_root.handlers):
        if getattr(existing, "_ethclient_configured", False):
            _root.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    if handler.formatter is None:
        handler.setFormatter(logging.Formatter(fmt))
    handler._ethclient_configured = True  # type: ignore[attr-defined]
    _root.addHandler(handler)
    set_level(level)
    return _root


def set_level(level: Union[int, str]) -> None:
    """Set the SDK root log level."""
    if isinstance(level, str):
        level = level.upper()
    _root.setLevel(level)


def disable_logging() -> None:
    """Silence all SDK log output until the next set_level or configure_logging."""
    _root.setLevel(logging.CRITICAL + 1)


def enable_debug() -> None:
    """Shortcut for ``configure_logging(level=logging.DEBUG)``."""
    configure_logging(level=logging.DEBUG)


__all__ = [
    "ROOT_LOGGER_NAME",
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
]
