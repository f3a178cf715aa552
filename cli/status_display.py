"""Status display functionality for CLI"""

from rich.table import Table
from spotify_oauth import CredentialStore


def show_token_status(storage: CredentialStore, console):
    """
    Display detailed token status

    Args:
        storage: CredentialStore instance
        console: Rich console for output
    """
    status = storage.get_status()

    table = Table(title="Token Status Details")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Has Tokens", "Yes" if status["has_tokens"] else "No")
    table.add_row("Is Expired", "Yes" if status["is_expired"] else "No")

    if status["expires_at"]:
        table.add_row("Expires At", status["expires_at"])
        table.add_row("Time Until Expiry", status["time_until_expiry"])
        table.add_row("Refresh Token", "Yes" if status["has_refresh_token"] else "No")
        table.add_row("Last Refresh", status.get("last_refresh") or "-")

    if status.get("client_id"):
        table.add_row("Client ID", status["client_id"])

    if status.get("error"):
        table.add_row("Error", f"[red]{status['error']}[/red]")

    table.add_row("Token File", str(storage.token_file))

    console.print(table)


def get_auth_status(storage: CredentialStore) -> tuple[str, str]:
    """
    Get authentication status and expiry info

    Args:
        storage: CredentialStore instance

    Returns:
        Tuple of (status, detail_message)
    """
    status = storage.get_status()

    if status.get("error"):
        return "CORRUPT", "Token file unreadable"

    if not status["has_tokens"]:
        return "NO AUTH", "No tokens available"

    if status["is_expired"]:
        if status["has_refresh_token"]:
            return "EXPIRED", f"Expired {status['time_until_expiry']} (refreshable)"
        return "EXPIRED", f"Expired {status['time_until_expiry']}"

    return "VALID", f"Expires in {status['time_until_expiry']}"
