"""Spotify playback client"""

from .client import PlaybackClient, TokenProvider
from .errors import PlaybackError, PlaybackNetworkError, RemoteAPIError
from .models import Album, Artist, CurrentlyPlaying, Track, format_duration

__all__ = [
    "PlaybackClient",
    "TokenProvider",
    "PlaybackError",
    "PlaybackNetworkError",
    "RemoteAPIError",
    "Album",
    "Artist",
    "CurrentlyPlaying",
    "Track",
    "format_duration",
]
