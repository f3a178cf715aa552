"""Logging setup and a Rich console that mirrors output to the log file.

The terminal is owned by the player display, so log records never go to
stderr; they are appended to a file instead.
"""

import io
import logging
import os
from pathlib import Path
from typing import Optional, Union

from rich.console import Console as RichConsole

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class DebugCapturingConsole(RichConsole):
    """
    Rich Console that also writes a plain text copy of everything printed
    to a debug logger.
    """

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"[CONSOLE] {plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        buffer = io.StringIO()
        temp_console = RichConsole(
            file=buffer,
            force_terminal=False,
            no_color=True,
            width=self.width,
        )
        temp_console.print(*objects, **kwargs)
        return buffer.getvalue().rstrip()


def setup_logging(
    log_file: Union[str, Path],
    level: Union[str, int] = logging.WARNING,
    debug: bool = False,
) -> Path:
    """
    Route all log records to a file.

    Args:
        log_file: Path of the log file (parent directory is created)
        level: Level name or number used when debug is off
        debug: Force DEBUG level

    Returns:
        Absolute path of the log file
    """
    log_path = Path(log_file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else level)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(file_handler)

    # Tokens and full request URLs appear in httpx debug output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    try:
        os.chmod(log_path, 0o600)
    except OSError:
        pass

    return log_path


def create_debug_console(debug_enabled: bool = False) -> RichConsole:
    """
    Create a console that mirrors its output to the log when debugging.

    Args:
        debug_enabled: Whether debug mode is enabled

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled:
        return DebugCapturingConsole(debug_logger=logging.getLogger("debug_console"))
    return RichConsole()
