"""
Spotify token endpoint: authorization-code exchange and refresh
"""
import logging
from typing import Any, Dict, Optional, Type

import httpx

from settings import REQUEST_TIMEOUT, TOKEN_URL
from .errors import AuthNetworkError, ExchangeFailedError, RefreshFailedError, TokenEndpointError
from .models import TokenResponse

logger = logging.getLogger(__name__)


async def _post_token_request(
    data: Dict[str, str],
    client_id: str,
    client_secret: str,
    error_cls: Type[TokenEndpointError],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TokenResponse:
    """POST a grant to the token endpoint and parse the response

    Client credentials are sent with HTTP Basic auth.
    """
    try:
        async with httpx.AsyncClient(transport=transport, timeout=REQUEST_TIMEOUT) as client:
            response = await client.post(
                TOKEN_URL,
                data=data,
                auth=(client_id, client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
    except httpx.TimeoutException as e:
        raise AuthNetworkError(f"Token request timed out after {REQUEST_TIMEOUT} seconds: {e}") from e
    except httpx.RequestError as e:
        raise AuthNetworkError(f"Token request failed: {e}") from e

    logger.debug(f"Token endpoint response status: {response.status_code}")

    if response.status_code != 200:
        logger.error(f"Token request ({data['grant_type']}) failed with status {response.status_code}")
        raise error_cls(
            f"Token endpoint returned HTTP {response.status_code}: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        payload: Any = response.json()
    except ValueError as e:
        raise error_cls(
            f"Token endpoint response was not JSON: {response.text}",
            status_code=response.status_code,
            body=response.text,
        ) from e

    if not isinstance(payload, dict) or not payload.get("access_token"):
        raise error_cls(
            "Token endpoint response missing access_token",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        expires_in = int(payload.get("expires_in", 3600))
    except (TypeError, ValueError) as e:
        raise error_cls(
            f"Token endpoint returned invalid expires_in: {payload.get('expires_in')!r}",
            status_code=response.status_code,
            body=response.text,
        ) from e

    return TokenResponse(
        access_token=str(payload["access_token"]),
        expires_in=expires_in,
        refresh_token=payload.get("refresh_token"),
        token_type=str(payload.get("token_type") or "Bearer"),
        scope=payload.get("scope"),
    )


async def exchange_code_for_tokens(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TokenResponse:
    """
    Exchange authorization code for access and refresh tokens.

    Args:
        code: Authorization code from callback
        client_id: Spotify application client ID
        client_secret: Spotify application client secret
        redirect_uri: The redirect URI used in the authorize request
        transport: Optional httpx transport (tests)

    Returns:
        TokenResponse

    Raises:
        ExchangeFailedError: If Spotify rejected the code
        AuthNetworkError: If the request could not be sent
    """
    logger.info(f"Exchanging authorization code for tokens at {TOKEN_URL}")
    tokens = await _post_token_request(
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
        },
        client_id,
        client_secret,
        ExchangeFailedError,
        transport=transport,
    )
    logger.info("Successfully exchanged authorization code for tokens")
    return tokens


async def refresh_access_token(
    refresh_token: str,
    client_id: str,
    client_secret: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TokenResponse:
    """
    Refresh access token using refresh token.

    The response may not include a new refresh token; callers keep the old one.

    Raises:
        RefreshFailedError: If Spotify rejected the refresh token
        AuthNetworkError: If the request could not be sent
    """
    tokens = await _post_token_request(
        {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        },
        client_id,
        client_secret,
        RefreshFailedError,
        transport=transport,
    )
    logger.info("Successfully refreshed Spotify access token")
    return tokens
