"""Spotify playback control over the Web API"""

import logging
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError

from .errors import PlaybackNetworkError, RemoteAPIError
from .models import CurrentlyPlaying, format_duration

logger = logging.getLogger(__name__)


class TokenProvider(Protocol):
    """Source of an authenticated Web API client (TokenManager)"""

    async def get_authenticated_client(self) -> httpx.AsyncClient:
        ...


class PlaybackClient:
    """Thin Spotify Web API client for the player endpoints

    Each operation performs one authenticated request. The HTTP client is
    obtained from the token provider on first use and reused afterwards.
    """

    def __init__(self, token_provider: TokenProvider):
        self.token_provider = token_provider
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = await self.token_provider.get_authenticated_client()
        return self._client

    async def _request(self, method: str, path: str) -> httpx.Response:
        client = await self._get_client()
        try:
            response = await client.request(method, path)
        except httpx.RequestError as e:
            raise PlaybackNetworkError(f"Spotify API request failed: {e}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if not response.is_success:
            raise RemoteAPIError(response.status_code, response.text)
        return response

    async def currently_playing(self) -> CurrentlyPlaying:
        """Get the currently playing track

        A 204 (nothing playing) is returned as CurrentlyPlaying(is_playing=False).
        """
        response = await self._request("GET", "/me/player/currently-playing")
        if response.status_code == 204 or not response.content:
            return CurrentlyPlaying(is_playing=False)

        try:
            return CurrentlyPlaying.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteAPIError(response.status_code, f"Unexpected response body: {e}") from e

    async def play(self) -> None:
        """Start or resume playback"""
        await self._request("PUT", "/me/player/play")

    async def pause(self) -> None:
        """Pause playback"""
        await self._request("PUT", "/me/player/pause")

    async def next(self) -> None:
        """Skip to the next track"""
        await self._request("POST", "/me/player/next")

    async def previous(self) -> None:
        """Go back to the previous track"""
        await self._request("POST", "/me/player/previous")

    async def play_pause(self) -> None:
        """Toggle playback based on the current state"""
        current = await self.currently_playing()
        if current.is_playing:
            await self.pause()
        else:
            await self.play()

    async def format_track_info(self) -> str:
        """One-line description of the current track

        Returns:
            "Artists - Title (m:ss/m:ss)" or a placeholder when nothing plays
        """
        current = await self.currently_playing()
        track = current.item
        if not current.is_playing or track is None or not track.name:
            return "No track currently playing"

        progress = f"{format_duration(current.progress_ms or 0)}/{format_duration(track.duration_ms)}"
        artists = track.artist_names
        if artists:
            return f"{artists} - {track.name} ({progress})"
        return f"{track.name} ({progress})"

    async def aclose(self) -> None:
        """Close the underlying HTTP client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
