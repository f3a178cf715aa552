"""Authentication handlers for CLI"""

import logging
import webbrowser

from rich.console import Console

from spotify_oauth import (
    AuthNetworkError,
    CredentialStoreError,
    NotAuthenticatedError,
    RefreshFailedError,
    TokenManager,
    TokenRecord,
)

logger = logging.getLogger(__name__)


async def check_and_refresh_auth(manager: TokenManager, console: Console) -> tuple[bool, str, str]:
    """
    Check authentication status and attempt refresh if needed

    Args:
        manager: TokenManager instance
        console: Rich console for output

    Returns:
        Tuple of (success: bool, status: str, message: str)
    """
    if manager.has_valid_credential():
        status = manager.store.get_status()
        return True, "VALID", f"Token valid for: {status['time_until_expiry']}"

    status = manager.store.get_status()
    if status.get("error"):
        return False, "CORRUPT", f"{status['error']}. Please login again"

    if not status["has_tokens"]:
        return False, "NO_AUTH", "No valid token found"

    if not manager.can_refresh():
        return False, "NO_REFRESH", "Token expired and no refresh token available"

    console.print("[yellow]Token expired, attempting automatic refresh...[/yellow]")

    try:
        await manager.get_credential()
    except RefreshFailedError as e:
        if e.status_code in (400, 401, 403):
            return False, "INVALID_TOKEN", "Refresh token invalid or expired. Please login again"
        return False, "REFRESH_FAILED", f"Token refresh failed (HTTP {e.status_code})"
    except AuthNetworkError as e:
        return False, "NETWORK_ERROR", f"Network error during token refresh: {e}"
    except (NotAuthenticatedError, CredentialStoreError) as e:
        return False, "REFRESH_FAILED", str(e)

    new_status = manager.store.get_status()
    return True, "REFRESHED", f"Automatically refreshed expired token. Token valid for: {new_status['time_until_expiry']}"


async def login(manager: TokenManager, console: Console, open_browser: bool = True) -> TokenRecord:
    """
    Run the interactive login, printing the authorization URL

    Errors from the token manager propagate to the caller.
    """
    console.print("\n[bold cyan]Spotify Authentication[/bold cyan]\n")

    def show_url(url: str) -> None:
        console.print("Please open the following URL in your browser:")
        console.print(f"[cyan]{url}[/cyan]\n")
        if open_browser:
            try:
                if webbrowser.open(url):
                    console.print("[green]✓ Browser opened[/green]")
            except webbrowser.Error as e:
                logger.debug(f"Could not open browser: {e}")
                console.print("[yellow]⚠ Could not open browser automatically[/yellow]")
        console.print("Waiting for authentication...")

    record = await manager.authenticate(on_authorize_url=show_url)
    console.print("[bold green]✓ Authentication successful![/bold green]")
    return record


async def ensure_authenticated(
    manager: TokenManager,
    console: Console,
    force_login: bool = False,
    open_browser: bool = True,
) -> None:
    """
    Make sure a usable token exists, refreshing or logging in as needed

    Raises:
        SpotifyAuthError: If login fails
    """
    if not force_login:
        ok, status, message = await check_and_refresh_auth(manager, console)
        logger.info(f"Startup auth check: {status}")
        if ok:
            console.print(f"[dim]{message}[/dim]")
            return
        console.print(f"[yellow]{message}. Starting authentication flow...[/yellow]")

    await login(manager, console, open_browser=open_browser)


def logout(manager: TokenManager, console: Console) -> bool:
    """Clear stored tokens"""
    if manager.logout():
        console.print("[green]✓ Logged out, tokens cleared[/green]")
        return True
    console.print(f"[red]✗ Failed to remove {manager.store.token_file}[/red]")
    return False
