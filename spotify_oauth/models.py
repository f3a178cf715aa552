"""Data models for Spotify OAuth authentication"""

import datetime
from dataclasses import dataclass
from typing import Any, Dict, Optional

from settings import TOKEN_EXPIRY_SKEW


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def format_timestamp(value: datetime.datetime) -> str:
    """ISO 8601 UTC timestamp with a Z suffix"""
    return value.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime.datetime:
    """Parse a timestamp written by format_timestamp

    Naive timestamps are assumed to be UTC.
    """
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


@dataclass
class TokenResponse:
    """Token endpoint payload

    Attributes:
        access_token: Bearer token for API authentication
        expires_in: Lifetime of the access token in seconds
        refresh_token: Token for refreshing the access token (may be omitted on refresh)
        token_type: Usually "Bearer"
        scope: Space-delimited scopes that were granted
    """
    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    scope: Optional[str] = None


@dataclass(frozen=True)
class TokenRecord:
    """The persisted credential

    Attributes:
        access_token: Bearer token for API authentication
        refresh_token: Long-lived token used to obtain new access tokens
        expiry: When the access token stops being valid (UTC)
        client_id: Spotify application the token was issued to
        last_refresh: When the token was issued or last refreshed (UTC)
        token_type: Authorization scheme, usually "Bearer"
    """
    access_token: str
    refresh_token: Optional[str]
    expiry: datetime.datetime
    client_id: str
    last_refresh: datetime.datetime
    token_type: str = "Bearer"

    @classmethod
    def from_token_response(
        cls,
        response: TokenResponse,
        client_id: str,
        now: Optional[datetime.datetime] = None,
        previous_refresh_token: Optional[str] = None,
    ) -> "TokenRecord":
        """Build a record from a token endpoint response

        Spotify may omit refresh_token on refresh, in which case the
        previous one is kept.
        """
        issued_at = now or utc_now()
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token or previous_refresh_token,
            expiry=issued_at + datetime.timedelta(seconds=response.expires_in),
            client_id=client_id,
            last_refresh=issued_at,
            token_type=response.token_type or "Bearer",
        )

    def is_expired(self, now: Optional[datetime.datetime] = None) -> bool:
        """True once the token is within TOKEN_EXPIRY_SKEW seconds of expiry"""
        current = now or utc_now()
        return current >= self.expiry - datetime.timedelta(seconds=TOKEN_EXPIRY_SKEW)

    def with_refresh(self, response: TokenResponse, now: Optional[datetime.datetime] = None) -> "TokenRecord":
        return self.from_token_response(
            response,
            self.client_id,
            now=now,
            previous_refresh_token=self.refresh_token,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk JSON layout"""
        return {
            "token": {
                "access_token": self.access_token,
                "token_type": self.token_type,
                "refresh_token": self.refresh_token,
                "expiry": format_timestamp(self.expiry),
            },
            "client_id": self.client_id,
            "last_refresh": format_timestamp(self.last_refresh),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenRecord":
        """Load from the on-disk JSON layout

        Raises:
            KeyError, TypeError, ValueError: If a field is missing or malformed
        """
        token = data["token"]
        if not isinstance(token, dict):
            raise TypeError("token must be an object")

        access_token = token["access_token"]
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("access_token must be a non-empty string")

        refresh_token = token.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise TypeError("refresh_token must be a string")

        client_id = data.get("client_id", "")
        if not isinstance(client_id, str):
            raise TypeError("client_id must be a string")

        return cls(
            access_token=access_token,
            refresh_token=refresh_token or None,
            expiry=parse_timestamp(token["expiry"]),
            client_id=client_id,
            last_refresh=parse_timestamp(data["last_refresh"]),
            token_type=str(token.get("token_type") or "Bearer"),
        )
