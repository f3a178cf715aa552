"""
Pydantic models for Spotify playback state.
"""
from typing import List, Optional
from pydantic import BaseModel


class Artist(BaseModel):
    """Track artist"""
    name: str = ""
    uri: str = ""


class Album(BaseModel):
    """Track album"""
    name: str = ""
    uri: str = ""


class Track(BaseModel):
    """Currently playing item (episodes parse with no artists)"""
    name: str = ""
    artists: List[Artist] = []
    album: Album = Album()
    duration_ms: int = 0
    uri: str = ""

    @property
    def artist_names(self) -> str:
        return ", ".join(artist.name for artist in self.artists if artist.name)


class CurrentlyPlaying(BaseModel):
    """Response of GET /me/player/currently-playing"""
    is_playing: bool = False
    item: Optional[Track] = None
    progress_ms: Optional[int] = 0
    timestamp: Optional[int] = 0


def format_duration(ms: int) -> str:
    """Milliseconds as m:ss"""
    total_seconds = max(0, int(ms or 0)) // 1000
    return f"{total_seconds // 60}:{total_seconds % 60:02d}"
