"""
OAuth token lifecycle management
"""
import asyncio
import logging
from typing import AsyncGenerator, Callable, Optional

import httpx

from config.loader import AppConfig
from settings import API_BASE, LOGIN_TIMEOUT, REQUEST_TIMEOUT
from .authorization import create_authorization_flow, parse_redirect_uri
from .callback_server import OAuthCallbackServer
from .errors import (
    CredentialStoreError,
    LoginInProgressError,
    NotAuthenticatedError,
)
from .models import TokenRecord
from .storage import CredentialStore
from .token_exchange import exchange_code_for_tokens, refresh_access_token

logger = logging.getLogger(__name__)


class BearerAuth(httpx.Auth):
    """httpx auth hook that asks the manager for a valid token on every request"""

    def __init__(self, manager: "TokenManager"):
        self.manager = manager

    def sync_auth_flow(self, request):
        raise RuntimeError("BearerAuth refreshes tokens asynchronously; use httpx.AsyncClient")

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self.manager.get_credential()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


class TokenManager:
    """Owns the OAuth authorization-code flow and the in-memory token

    One instance is created per process and handed to collaborators; the
    credential store is only used to persist what this object holds.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[CredentialStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize token manager.

        Args:
            config: Spotify application credentials and redirect URI
            store: Token persistence (default: config.token_file)
            transport: Optional httpx transport for the token endpoint and API (tests)
        """
        self.config = config
        self.store = store or CredentialStore(config.token_file)
        self.transport = transport
        self._record: Optional[TokenRecord] = None
        self._token_lock = asyncio.Lock()
        self._pending_login: Optional[OAuthCallbackServer] = None

    @property
    def record(self) -> Optional[TokenRecord]:
        return self._record

    @property
    def login_pending(self) -> bool:
        return self._pending_login is not None

    def _load_from_store(self) -> Optional[TokenRecord]:
        record = self.store.load()
        if record is not None:
            self._record = record
        return record

    def has_valid_credential(self) -> bool:
        """
        Check for an unexpired token in memory or on disk (no network call).

        Returns:
            True if a token exists and has not expired
        """
        if self._record is not None and not self._record.is_expired():
            return True

        try:
            record = self._load_from_store()
        except CredentialStoreError as e:
            logger.warning(f"Ignoring unusable token file: {e}")
            return False

        return record is not None and not record.is_expired()

    def can_refresh(self) -> bool:
        """True if a stored token carries a refresh token"""
        if self._record is None:
            try:
                self._load_from_store()
            except CredentialStoreError:
                return False
        return self._record is not None and bool(self._record.refresh_token)

    async def authenticate(
        self,
        on_authorize_url: Optional[Callable[[str], None]] = None,
        timeout: Optional[float] = None,
    ) -> TokenRecord:
        """
        Run the interactive login.

        Starts the local callback listener, hands the authorization URL to
        on_authorize_url, waits for the redirect, exchanges the code and
        persists the resulting token. The listener is stopped on every path.

        Args:
            on_authorize_url: Called with the URL the user must open
            timeout: Seconds to wait for the redirect (default: settings.LOGIN_TIMEOUT)

        Returns:
            The newly issued TokenRecord

        Raises:
            LoginInProgressError: If another login is already pending
            LoginTimeoutError, StateMismatchError, NoCodeInResponseError,
            ExchangeFailedError, AuthNetworkError, CredentialStoreError
        """
        if self._pending_login is not None:
            raise LoginInProgressError("A login is already waiting for its callback")

        target = parse_redirect_uri(self.config.redirect_uri)
        flow = create_authorization_flow(self.config.client_id, self.config.redirect_uri)
        server = OAuthCallbackServer(flow.state, target.host, target.port, target.path)
        self._pending_login = server

        try:
            await server.start()

            logger.info("Waiting for Spotify authorization")
            if on_authorize_url is not None:
                on_authorize_url(flow.url)

            code = await server.wait_for_code(timeout=LOGIN_TIMEOUT if timeout is None else timeout)
        finally:
            await server.stop()
            self._pending_login = None

        tokens = await exchange_code_for_tokens(
            code,
            self.config.client_id,
            self.config.client_secret,
            self.config.redirect_uri,
            transport=self.transport,
        )
        record = TokenRecord.from_token_response(tokens, self.config.client_id)

        async with self._token_lock:
            self.store.save(record)
            self._record = record

        logger.info("Authentication successful")
        return record

    async def get_credential(self) -> str:
        """
        Get a valid access token, refreshing it if expired.

        The refreshed token is persisted before it is returned.

        Raises:
            NotAuthenticatedError: If there is no token, or it expired without a refresh token
            RefreshFailedError, AuthNetworkError, CredentialStoreError
        """
        async with self._token_lock:
            record = self._record
            if record is None:
                record = self._load_from_store()
            if record is None:
                raise NotAuthenticatedError("No Spotify token found. Please log in.")

            if not record.is_expired():
                return record.access_token

            if not record.refresh_token:
                raise NotAuthenticatedError("Access token expired and no refresh token is available")

            logger.info("Access token expired, refreshing...")
            tokens = await refresh_access_token(
                record.refresh_token,
                self.config.client_id,
                self.config.client_secret,
                transport=self.transport,
            )
            refreshed = record.with_refresh(tokens)

            self.store.save(refreshed)
            self._record = refreshed
            return refreshed.access_token

    async def get_authenticated_client(self) -> httpx.AsyncClient:
        """
        Create an HTTP client for the Spotify Web API.

        Every request made with the client carries the current bearer token.

        Raises:
            NotAuthenticatedError: If no usable token exists
        """
        await self.get_credential()
        return httpx.AsyncClient(
            base_url=API_BASE,
            auth=BearerAuth(self),
            timeout=REQUEST_TIMEOUT,
            transport=self.transport,
        )

    def logout(self) -> bool:
        """Drop the in-memory token and delete the token file"""
        self._record = None
        return self.store.clear()
