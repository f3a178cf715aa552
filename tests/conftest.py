"""Pytest configuration shared across the suite."""

import datetime
import json
import socket
from pathlib import Path

import httpx
import pytest

from config import AppConfig
from spotify_oauth import CredentialStore, TokenRecord


def make_record(
    access_token: str = "AT0",
    refresh_token="RT0",
    expires_in: float = 3600,
    client_id: str = "abc",
) -> TokenRecord:
    now = datetime.datetime.now(datetime.timezone.utc)
    return TokenRecord(
        access_token=access_token,
        refresh_token=refresh_token,
        expiry=now + datetime.timedelta(seconds=expires_in),
        client_id=client_id,
        last_refresh=now,
    )


def token_json(access_token: str, refresh_token=None, expires_in: int = 3600) -> dict:
    payload = {"access_token": access_token, "token_type": "Bearer", "expires_in": expires_in}
    if refresh_token is not None:
        payload["refresh_token"] = refresh_token
    return payload


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served"""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


@pytest.fixture
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    return tmp_path / "spotify-tmux" / "token.json"


@pytest.fixture
def app_config(token_file: Path, free_port: int) -> AppConfig:
    return AppConfig(
        client_id="abc",
        client_secret="xyz",
        redirect_uri=f"http://127.0.0.1:{free_port}/callback",
        token_file=str(token_file),
    )


@pytest.fixture
def store(token_file: Path) -> CredentialStore:
    return CredentialStore(str(token_file))


def read_token_file(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))
