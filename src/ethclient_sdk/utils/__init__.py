"""
ethclient SDK utilities.

This module provides logging and polling helpers for the SDK.
"""

from .logging import (
    configure_logging,
    disable_logging,
    enable_debug,
    get_logger,
    set_level,
)
from .polling import PollConfig, Waiter, calculate_delay

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    "disable_logging",
    "enable_debug",
    # Polling
    "PollConfig",
    "Waiter",
    "calculate_delay",
]
