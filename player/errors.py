"""Exceptions raised by the playback client"""


class PlaybackError(Exception):
    """Base class for playback call failures"""


class RemoteAPIError(PlaybackError):
    """Spotify Web API returned a non-2xx response"""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"API error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class PlaybackNetworkError(PlaybackError):
    """Request to the Spotify Web API could not be completed"""
