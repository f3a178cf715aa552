"""
Local OAuth callback server
"""
import asyncio
import html
import logging
from typing import Optional
from aiohttp import web

from .errors import (
    AuthNetworkError,
    LoginTimeoutError,
    NoCodeInResponseError,
    StateMismatchError,
)

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """
<html>
    <body>
        <h1>Authentication Successful!</h1>
        <p>You can now close this window and return to the terminal.</p>
        <script>
            setTimeout(function() {
                window.close();
            }, 2000);
        </script>
    </body>
</html>
"""

FAILURE_PAGE = """
<html>
    <body>
        <h1>Authentication Failed</h1>
        <p>{message}</p>
        <p>You can close this window.</p>
    </body>
</html>
"""


class OAuthCallbackServer:
    """Local HTTP server capturing a single OAuth redirect

    Holds the pending login: the expected state, a single-fire result
    that resolves to the authorization code or a typed error, and the
    bound listener.
    """

    def __init__(self, expected_state: str, host: str, port: int, path: str = "/callback"):
        self.expected_state = expected_state
        self.host = host
        self.port = port
        self.path = path
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._result: Optional[asyncio.Future] = None

        # Register callback route
        self.app.router.add_get(path, self._handle_callback)

    @property
    def resolved(self) -> bool:
        return self._result is not None and self._result.done()

    def _resolve(self, code: Optional[str] = None, error: Optional[Exception] = None) -> None:
        if self._result is None or self._result.done():
            return
        if error is not None:
            self._result.set_exception(error)
        else:
            self._result.set_result(code)

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Handle OAuth callback request"""
        if self.resolved:
            return self._failure("This login attempt has already completed.")

        state = request.query.get("state")
        code = request.query.get("code")
        error = request.query.get("error")

        # Validate state (CSRF protection)
        if state != self.expected_state:
            logger.warning("OAuth callback state mismatch, aborting login")
            self._resolve(error=StateMismatchError("State mismatch in OAuth callback"))
            return self._failure("State mismatch.")

        if not code:
            message = "No code in response"
            if error:
                message = f"{message} (provider error: {error})"
            logger.warning(f"OAuth callback without code: {error or 'no error given'}")
            self._resolve(error=NoCodeInResponseError(message, error=error))
            return self._failure(message + ".")

        logger.info("Received OAuth authorization code")
        self._resolve(code=code)
        return web.Response(text=SUCCESS_PAGE, content_type="text/html")

    @staticmethod
    def _failure(message: str) -> web.Response:
        return web.Response(
            text=FAILURE_PAGE.format(message=html.escape(message)),
            content_type="text/html",
            status=400,
        )

    async def start(self) -> None:
        """Start the callback server

        Raises:
            AuthNetworkError: If the port cannot be bound
        """
        self._result = asyncio.get_running_loop().create_future()
        self.runner = web.AppRunner(self.app, access_log=None)
        await self.runner.setup()

        site = web.TCPSite(self.runner, host=self.host, port=self.port)
        try:
            await site.start()
        except OSError as e:
            raise AuthNetworkError(
                f"Could not start OAuth callback listener on {self.host}:{self.port}: {e}"
            ) from e

        logger.info(f"OAuth callback server listening on {self.host}:{self.port}{self.path}")

    async def wait_for_code(self, timeout: float = 300) -> str:
        """
        Wait for OAuth callback.

        Args:
            timeout: Maximum time to wait in seconds (default 5 minutes)

        Returns:
            The authorization code

        Raises:
            LoginTimeoutError: If no callback arrived in time
            StateMismatchError: If the callback state did not match
            NoCodeInResponseError: If the callback carried no code
        """
        if self._result is None:
            raise RuntimeError("Callback server has not been started")

        try:
            return await asyncio.wait_for(asyncio.shield(self._result), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"OAuth callback timeout after {timeout} seconds")
            raise LoginTimeoutError(f"Authentication timed out after {timeout} seconds") from None

    async def stop(self) -> None:
        """Stop the callback server and release the port"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.debug("OAuth callback server stopped")
        if self._result is not None and not self._result.done():
            self._result.cancel()
