"""CLI package for spotify-tmux

This package provides the terminal player and the login/logout/status
commands around it.
"""

from cli.app import SpotifyTmuxCLI
from cli.main import main

__all__ = [
    "SpotifyTmuxCLI",
    "main",
]
