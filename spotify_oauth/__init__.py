"""Spotify OAuth authentication module

Authorization-code flow with local callback capture, token persistence
and refresh-on-expiry.
"""

from .errors import (
    SpotifyAuthError,
    LoginTimeoutError,
    StateMismatchError,
    NoCodeInResponseError,
    LoginInProgressError,
    TokenEndpointError,
    ExchangeFailedError,
    RefreshFailedError,
    NotAuthenticatedError,
    AuthNetworkError,
    CredentialStoreError,
    CorruptCredentialsError,
    CredentialIOError,
)
from .models import TokenRecord, TokenResponse
from .authorization import (
    AuthorizationFlow,
    RedirectTarget,
    build_authorize_url,
    create_authorization_flow,
    create_state,
    parse_redirect_uri,
)
from .callback_server import OAuthCallbackServer
from .token_exchange import exchange_code_for_tokens, refresh_access_token
from .storage import CredentialStore
from .token_manager import BearerAuth, TokenManager

__all__ = [
    # Errors
    "SpotifyAuthError",
    "LoginTimeoutError",
    "StateMismatchError",
    "NoCodeInResponseError",
    "LoginInProgressError",
    "TokenEndpointError",
    "ExchangeFailedError",
    "RefreshFailedError",
    "NotAuthenticatedError",
    "AuthNetworkError",
    "CredentialStoreError",
    "CorruptCredentialsError",
    "CredentialIOError",
    # Models
    "TokenRecord",
    "TokenResponse",
    # Authorization
    "AuthorizationFlow",
    "RedirectTarget",
    "build_authorize_url",
    "create_authorization_flow",
    "create_state",
    "parse_redirect_uri",
    # Callback Server
    "OAuthCallbackServer",
    # Token Exchange
    "exchange_code_for_tokens",
    "refresh_access_token",
    # Storage
    "CredentialStore",
    # Token Manager
    "BearerAuth",
    "TokenManager",
]
