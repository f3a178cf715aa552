"""Terminal player: poll-and-render loop with keyboard shortcuts"""

import asyncio
import contextlib
import logging
import os
import sys
from typing import Awaitable, Callable, Dict, Optional, Protocol, Set

from rich.align import Align
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from settings import POLL_INTERVAL

try:
    import termios
    import tty
except ImportError:
    termios = None
    tty = None

logger = logging.getLogger(__name__)

SHORTCUTS = "Shortcuts: p = play/pause, n = next, b = previous, q = quit"
BUTTONS = "◀ Previous    ▶ Play/Pause    Next ▶"


class PlayerController(Protocol):
    """What the UI needs from the playback client"""

    async def play_pause(self) -> None: ...

    async def next(self) -> None: ...

    async def previous(self) -> None: ...

    async def format_track_info(self) -> str: ...


@contextlib.contextmanager
def cbreak_terminal(stream=None):
    """Put a TTY into cbreak mode for single-key input, restoring it on exit"""
    stream = stream or sys.stdin
    if termios is None or tty is None or not stream.isatty():
        yield
        return

    fd = stream.fileno()
    old_attrs = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_attrs)


class PlayerUI:
    """Polls the player on a fixed interval and routes key presses to it"""

    def __init__(
        self,
        player: PlayerController,
        console: Optional[Console] = None,
        interval: float = POLL_INTERVAL,
    ):
        self.player = player
        self.console = console or Console()
        self.interval = interval
        self.info = "Loading..."
        self.error: Optional[str] = None
        self._stop = asyncio.Event()
        self._live: Optional[Live] = None
        self._tasks: Set[asyncio.Task] = set()
        self._commands: Dict[str, Callable[[], Awaitable[None]]] = {
            "p": player.play_pause,
            "n": player.next,
            "b": player.previous,
        }

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def render(self) -> Panel:
        """Build the fixed layout: track line, button bar, shortcut legend"""
        if self.error:
            status = Text(f"Error: {self.error}", style="red")
        else:
            status = Text(self.info, style="green")

        body = Group(
            Align.center(status),
            Align.center(Text(BUTTONS, style="bold")),
            Align.center(Text(SHORTCUTS, style="dim")),
        )
        return Panel(body, title="Spotify", border_style="cyan")

    def _redraw(self) -> None:
        if self._live is not None:
            self._live.update(self.render())

    def show_error(self, error: BaseException) -> None:
        self.error = str(error) or error.__class__.__name__
        self._redraw()

    async def update_track_info(self) -> None:
        """Fetch and display the current track; failures are shown inline"""
        try:
            info = await self.player.format_track_info()
        except Exception as e:
            logger.warning(f"Failed to fetch track info: {e}")
            self.show_error(e)
            return

        self.info = info
        self.error = None
        self._redraw()

    async def poll_loop(self) -> None:
        """Update immediately, then every interval until stop() is called"""
        while not self._stop.is_set():
            await self.update_track_info()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    async def dispatch(self, key: str) -> bool:
        """Run the command bound to a key

        Returns:
            False if the key requested quit, True otherwise
        """
        key = key.lower()
        if key == "q":
            self.stop()
            return False

        command = self._commands.get(key)
        if command is None:
            return True

        try:
            await command()
        except Exception as e:
            logger.warning(f"Command '{key}' failed: {e}")
            self.show_error(e)
            return True

        await self.update_track_info()
        return True

    def handle_input(self, data: str) -> None:
        """Schedule commands for each character read from the terminal"""
        for key in data:
            if self._stop.is_set():
                return
            if key.isspace():
                continue
            task = asyncio.get_running_loop().create_task(self.dispatch(key))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def _on_stdin_ready(self, fd: int) -> None:
        try:
            data = os.read(fd, 64)
        except OSError as e:
            logger.warning(f"Failed to read terminal input: {e}")
            return
        if not data:
            # EOF on stdin: no more commands can arrive
            asyncio.get_running_loop().remove_reader(fd)
            return
        self.handle_input(data.decode("utf-8", errors="ignore"))

    def stop(self) -> None:
        """Request an orderly stop; the poll loop exits before its next tick"""
        self._stop.set()

    async def run(self, read_keys: bool = True) -> None:
        """Render until stop() is called or 'q' is pressed"""
        loop = asyncio.get_running_loop()
        fd: Optional[int] = None

        with cbreak_terminal(), Live(
            self.render(),
            console=self.console,
            refresh_per_second=4,
            transient=False,
        ) as live:
            self._live = live

            if read_keys:
                try:
                    fd = sys.stdin.fileno()
                    loop.add_reader(fd, self._on_stdin_ready, fd)
                except (NotImplementedError, ValueError, OSError) as e:
                    logger.warning(f"Keyboard input unavailable: {e}")
                    fd = None

            poller = loop.create_task(self.poll_loop())
            try:
                await self._stop.wait()
            finally:
                self.stop()
                if fd is not None:
                    loop.remove_reader(fd)
                pending = [poller, *self._tasks]
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                self._live = None
