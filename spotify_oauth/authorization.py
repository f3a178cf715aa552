"""
Spotify OAuth authorization-code flow setup
"""
import secrets
from typing import Iterable, NamedTuple, Optional
from urllib.parse import urlencode, urlparse

from settings import AUTHORIZE_URL, SCOPES

# Bytes of entropy in the state parameter
STATE_BYTES = 32


class AuthorizationFlow(NamedTuple):
    """OAuth authorization flow data"""
    state: str
    url: str


class RedirectTarget(NamedTuple):
    """Where the local callback listener must bind"""
    host: str
    port: int
    path: str


def create_state() -> str:
    """
    Generate random state parameter for CSRF protection.

    Returns:
        str: URL-safe string carrying 32 random bytes
    """
    return secrets.token_urlsafe(STATE_BYTES)


def build_authorize_url(
    client_id: str,
    redirect_uri: str,
    state: str,
    scopes: Optional[Iterable[str]] = None,
) -> str:
    """
    Build the Spotify authorize URL.

    Args:
        client_id: Spotify application client ID
        redirect_uri: Registered redirect URI (must match exactly)
        state: CSRF state bound to this login attempt
        scopes: Requested scopes (default: settings.SCOPES)

    Returns:
        str: Full authorization URL
    """
    scope_list = list(scopes if scopes is not None else SCOPES)
    params = {
        "client_id": client_id,
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "scope": " ".join(scope_list),
        "state": state,
        # Ask for a refresh token
        "access_type": "offline",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def create_authorization_flow(client_id: str, redirect_uri: str) -> AuthorizationFlow:
    """
    Create a Spotify OAuth authorization flow.

    Returns:
        AuthorizationFlow: Tuple of (state, url)
    """
    state = create_state()
    url = build_authorize_url(client_id, redirect_uri, state)
    return AuthorizationFlow(state=state, url=url)


def parse_redirect_uri(redirect_uri: str) -> RedirectTarget:
    """
    Split the redirect URI into the host, port and path the listener binds.

    Raises:
        ValueError: If the URI is not an http(s) URL with a host
    """
    parsed = urlparse(redirect_uri)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"Redirect URI must be an http URL with a host: {redirect_uri!r}")

    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    return RedirectTarget(host=parsed.hostname, port=port, path=parsed.path or "/")
