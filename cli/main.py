"""CLI entry point and argument parsing"""

import sys
import argparse
import logging
from rich.console import Console
import settings
from config import ConfigInvalidError
from cli.app import SpotifyTmuxCLI
from utils import setup_logging


console = Console()
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Control Spotify playback from the terminal")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--login", action="store_true", help="Force a new Spotify login before starting")
    parser.add_argument("--logout", action="store_true", help="Delete stored tokens and exit")
    parser.add_argument("--status", action="store_true", help="Show token status and exit")
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Write the effective client config to ~/.spotify-tmux/config.json and exit"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help=f"Seconds between track updates (default: {settings.POLL_INTERVAL})"
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Print the login URL without opening a browser"
    )
    return parser


def main(argv=None):
    """Entry point for the CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.interval is not None and args.interval <= 0:
        parser.error("--interval must be positive")

    log_path = setup_logging(settings.LOG_FILE, level=settings.LOG_LEVEL, debug=args.debug)
    if args.debug:
        console.print(f"[yellow]Debug mode enabled - verbose logging will be written to {log_path}[/yellow]")

    exit_code = 0
    try:
        try:
            cli = SpotifyTmuxCLI.from_environment(
                debug=args.debug,
                interval=args.interval,
                open_browser=not args.no_browser,
            )
        except ConfigInvalidError as e:
            console.print(f"[red]ERROR:[/red] {e}")
            sys.exit(1)

        if args.save_config:
            cli.save_config()
        elif args.logout:
            exit_code = 0 if cli.logout() else 1
        elif args.status:
            cli.show_status()
        else:
            exit_code = cli.run(force_login=args.login)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        console.print("Goodbye!")
    except Exception as e:
        logger.exception("Fatal error")
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
