"""Shared utilities package for spotify-tmux"""

from .debug_console import (
    LOG_FORMAT,
    DebugCapturingConsole,
    create_debug_console,
    setup_logging,
)

__all__ = [
    "LOG_FORMAT",
    "DebugCapturingConsole",
    "create_debug_console",
    "setup_logging",
]
