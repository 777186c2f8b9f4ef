"""Core MacroBoard utilities.

This module exports core utilities for use throughout the application.
"""

from macroboard.core.config import Settings, get_settings
from macroboard.core.logging import (
    LoggingContext,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "clear_context",
]
