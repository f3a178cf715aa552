import io
import json
import logging

import httpx
import pytest
from rich.console import Console

import settings
from cli import main as cli_main
from cli.auth_handlers import check_and_refresh_auth, ensure_authenticated
from cli.status_display import get_auth_status, show_token_status
from conftest import make_record, token_json
from spotify_oauth import TokenManager


def make_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


def refresh_transport(status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, json={"error": "invalid_grant"})
        return httpx.Response(200, json=token_json("AT2"))

    return httpx.MockTransport(handler)


class FakeLogin:
    def __init__(self, manager: TokenManager):
        self.calls = 0
        self.manager = manager

    async def __call__(self, on_authorize_url=None, timeout=None):
        self.calls += 1
        if on_authorize_url is not None:
            on_authorize_url("https://accounts.spotify.com/authorize?state=s")
        record = make_record(access_token="AT-login")
        self.manager.store.save(record)
        return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.mark.asyncio
async def test_check_reports_valid_token(app_config, store) -> None:
    store.save(make_record())
    manager = TokenManager(app_config, store=store)

    ok, status, _ = await check_and_refresh_auth(manager, make_console())

    assert (ok, status) == (True, "VALID")


@pytest.mark.asyncio
async def test_check_refreshes_expired_token(app_config, store) -> None:
    store.save(make_record(expires_in=-60))
    manager = TokenManager(app_config, store=store, transport=refresh_transport())

    ok, status, _ = await check_and_refresh_auth(manager, make_console())

    assert (ok, status) == (True, "REFRESHED")
    assert store.load().access_token == "AT2"


@pytest.mark.asyncio
async def test_check_reports_rejected_refresh(app_config, store) -> None:
    store.save(make_record(expires_in=-60))
    manager = TokenManager(app_config, store=store, transport=refresh_transport(status=400))

    ok, status, _ = await check_and_refresh_auth(manager, make_console())

    assert (ok, status) == (False, "INVALID_TOKEN")


@pytest.mark.asyncio
async def test_startup_falls_back_to_login_when_refresh_fails(app_config, store) -> None:
    store.save(make_record(expires_in=-60))
    manager = TokenManager(app_config, store=store, transport=refresh_transport(status=400))
    manager.authenticate = FakeLogin(manager)
    console = make_console()

    await ensure_authenticated(manager, console, open_browser=False)

    assert manager.authenticate.calls == 1
    assert store.load().access_token == "AT-login"
    assert "https://accounts.spotify.com/authorize?state=s" in console.file.getvalue()


@pytest.mark.asyncio
async def test_startup_falls_back_to_login_with_undecodable_token_file(app_config, store, token_file) -> None:
    token_file.parent.mkdir(parents=True)
    token_file.write_bytes(b"\xff\xfe\xfa")
    manager = TokenManager(app_config, store=store)
    manager.authenticate = FakeLogin(manager)

    ok, status, _ = await check_and_refresh_auth(manager, make_console())
    await ensure_authenticated(manager, make_console(), open_browser=False)

    assert (ok, status) == (False, "CORRUPT")
    assert manager.authenticate.calls == 1
    assert store.load().access_token == "AT-login"


@pytest.mark.asyncio
async def test_startup_skips_login_with_valid_token(app_config, store) -> None:
    store.save(make_record())
    manager = TokenManager(app_config, store=store)
    manager.authenticate = FakeLogin(manager)

    await ensure_authenticated(manager, make_console(), open_browser=False)

    assert manager.authenticate.calls == 0


@pytest.mark.asyncio
async def test_forced_login_ignores_valid_token(app_config, store) -> None:
    store.save(make_record())
    manager = TokenManager(app_config, store=store)
    manager.authenticate = FakeLogin(manager)

    await ensure_authenticated(manager, make_console(), force_login=True, open_browser=False)

    assert manager.authenticate.calls == 1


def test_status_table_and_summary(store) -> None:
    console = make_console()
    store.save(make_record(client_id="abc", expires_in=-60))

    show_token_status(store, console)

    output = console.file.getvalue()
    assert "Token Status Details" in output
    assert "abc" in output
    assert get_auth_status(store)[0] == "EXPIRED"


@pytest.fixture
def cli_env(monkeypatch, tmp_path, token_file, restore_root_logger):
    monkeypatch.setattr("config.loader.CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setattr(settings, "LOG_FILE", str(tmp_path / "spotify-tmux.log"))
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "xyz")
    monkeypatch.setenv("SPOTIFY_TOKEN_FILE", str(token_file))
    return tmp_path


def test_main_logout_clears_tokens(cli_env, store, token_file) -> None:
    store.save(make_record())

    with pytest.raises(SystemExit) as excinfo:
        cli_main(["--logout"])

    assert excinfo.value.code == 0
    assert not token_file.exists()


def test_main_save_config(cli_env, token_file) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_main(["--save-config"])

    assert excinfo.value.code == 0
    saved = json.loads((cli_env / "config.json").read_text(encoding="utf-8"))
    assert saved["client_id"] == "abc"
    assert saved["token_file"] == str(token_file)


def test_main_rejects_missing_credentials(cli_env, monkeypatch) -> None:
    monkeypatch.delenv("SPOTIFY_CLIENT_ID")
    monkeypatch.delenv("CLIENT_ID", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        cli_main(["--status"])

    assert excinfo.value.code == 1


def test_main_rejects_unusable_redirect_uri(cli_env, monkeypatch) -> None:
    monkeypatch.setenv("SPOTIFY_REDIRECT_URI", "localhost:8080/callback")

    with pytest.raises(SystemExit) as excinfo:
        cli_main(["--login", "--no-browser"])

    assert excinfo.value.code == 1
