"""Main CLI application class for spotify-tmux"""

import asyncio
import logging
import signal
from typing import Optional

from rich.console import Console
from rich.panel import Panel

import settings
from cli.auth_handlers import ensure_authenticated, logout
from cli.player_ui import PlayerUI
from cli.status_display import get_auth_status, show_token_status
from config import AppConfig, load_app_config, save_app_config
from player import PlaybackClient
from spotify_oauth import CredentialStore, SpotifyAuthError, TokenManager
from utils import create_debug_console

logger = logging.getLogger(__name__)


class SpotifyTmuxCLI:
    """Wires config, token manager, playback client and the player display"""

    def __init__(
        self,
        config: AppConfig,
        debug: bool = False,
        interval: Optional[float] = None,
        open_browser: bool = True,
        console: Optional[Console] = None,
    ):
        self.config = config
        self.debug = debug
        self.interval = settings.POLL_INTERVAL if interval is None else interval
        self.open_browser = open_browser
        self.console = console or create_debug_console(debug)

        self.storage = CredentialStore(config.token_file)
        self.token_manager = TokenManager(config, store=self.storage)
        self.player = PlaybackClient(self.token_manager)

    @classmethod
    def from_environment(cls, **kwargs) -> "SpotifyTmuxCLI":
        """Build the app from ~/.spotify-tmux/config.json and the environment

        Raises:
            ConfigInvalidError: If client credentials are missing
        """
        return cls(load_app_config(), **kwargs)

    def display_header(self):
        """Display application header"""
        state, detail = get_auth_status(self.storage)
        self.console.print(Panel.fit(
            "[bold cyan]spotify-tmux[/bold cyan]\n"
            f"[dim]Auth: {state} ({detail})[/dim]",
            border_style="cyan"
        ))

    def show_status(self):
        """Print the token status table"""
        show_token_status(self.storage, self.console)

    def logout(self) -> bool:
        return logout(self.token_manager, self.console)

    def save_config(self):
        """Write the effective config to the per-user config file"""
        path = save_app_config(self.config)
        self.console.print(f"[green]✓ Config saved to {path}[/green]")

    async def _run(self, force_login: bool = False):
        ui = PlayerUI(self.player, console=self.console, interval=self.interval)
        loop = asyncio.get_running_loop()
        installed = []

        try:
            # Ctrl-C during login raises KeyboardInterrupt as usual
            await ensure_authenticated(
                self.token_manager,
                self.console,
                force_login=force_login,
                open_browser=self.open_browser,
            )

            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, ui.stop)
                    installed.append(sig)
                except (NotImplementedError, RuntimeError):
                    # Not supported on this platform; KeyboardInterrupt still applies
                    pass

            self.display_header()
            logger.info(f"Starting player loop (interval={self.interval}s)")
            await ui.run()
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            await self.player.aclose()

    def run(self, force_login: bool = False) -> int:
        """
        Authenticate and run the player until the user quits

        Returns:
            Process exit code
        """
        try:
            asyncio.run(self._run(force_login=force_login))
        except SpotifyAuthError as e:
            logger.error(f"Authentication failed: {e}")
            self.console.print(f"[red]✗ Authentication failed:[/red] {e}")
            return 1

        self.console.print("Goodbye!")
        return 0
