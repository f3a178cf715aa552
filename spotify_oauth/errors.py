"""Exceptions raised by the Spotify OAuth token lifecycle"""

from typing import Optional


class SpotifyAuthError(Exception):
    """Base class for authentication and credential storage failures"""


class LoginTimeoutError(SpotifyAuthError):
    """No callback arrived before the login timeout elapsed"""


class StateMismatchError(SpotifyAuthError):
    """Callback carried a state that does not match the pending login"""


class NoCodeInResponseError(SpotifyAuthError):
    """Callback carried no authorization code"""

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.error = error


class LoginInProgressError(SpotifyAuthError):
    """Another interactive login is already waiting for its callback"""


class TokenEndpointError(SpotifyAuthError):
    """Token endpoint rejected a grant"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ExchangeFailedError(TokenEndpointError):
    """Authorization code could not be exchanged for a token"""


class RefreshFailedError(TokenEndpointError):
    """Refresh token was rejected"""


class NotAuthenticatedError(SpotifyAuthError):
    """No usable token and no way to refresh one"""


class AuthNetworkError(SpotifyAuthError):
    """Network failure talking to the token endpoint or binding the listener"""


class CredentialStoreError(SpotifyAuthError):
    """Base class for token file failures"""


class CorruptCredentialsError(CredentialStoreError):
    """Token file exists but cannot be parsed"""


class CredentialIOError(CredentialStoreError):
    """Token file could not be read or written"""
