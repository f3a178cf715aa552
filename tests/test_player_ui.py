import asyncio
import io

import pytest
from rich.console import Console

from cli.player_ui import SHORTCUTS, PlayerUI
from player import RemoteAPIError


class FakePlayer:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.info = "Artist - Song (0:01/3:00)"
        self.fail_info = False
        self.fail_commands = False
        self.info_requested = asyncio.Event()

    async def _command(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_commands:
            raise RemoteAPIError(404, "No active device")

    async def play_pause(self) -> None:
        await self._command("play_pause")

    async def next(self) -> None:
        await self._command("next")

    async def previous(self) -> None:
        await self._command("previous")

    async def format_track_info(self) -> str:
        self.calls.append("info")
        self.info_requested.set()
        if self.fail_info:
            raise RemoteAPIError(401, "The access token expired")
        return self.info


def make_ui(player: FakePlayer, interval: float = 10) -> PlayerUI:
    console = Console(file=io.StringIO(), force_terminal=False, width=100)
    return PlayerUI(player, console=console, interval=interval)


def rendered_text(ui: PlayerUI) -> str:
    console = Console(file=io.StringIO(), force_terminal=False, width=100)
    console.print(ui.render())
    return console.file.getvalue()


@pytest.mark.asyncio
@pytest.mark.parametrize("key, command", [("p", "play_pause"), ("n", "next"), ("b", "previous"), ("N", "next")])
async def test_keys_run_command_then_refresh(key: str, command: str) -> None:
    player = FakePlayer()
    ui = make_ui(player)

    assert await ui.dispatch(key) is True

    assert player.calls == [command, "info"]
    assert ui.info == player.info


@pytest.mark.asyncio
async def test_quit_key_stops_without_commands() -> None:
    player = FakePlayer()
    ui = make_ui(player)

    assert await ui.dispatch("q") is False

    assert ui.stopped is True
    assert player.calls == []


@pytest.mark.asyncio
async def test_unknown_key_is_ignored() -> None:
    player = FakePlayer()
    ui = make_ui(player)

    assert await ui.dispatch("x") is True
    assert player.calls == []


@pytest.mark.asyncio
async def test_command_failure_is_shown_inline() -> None:
    player = FakePlayer()
    player.fail_commands = True
    ui = make_ui(player)

    assert await ui.dispatch("n") is True

    assert ui.stopped is False
    assert "Error: API error 404: No active device" in rendered_text(ui)


@pytest.mark.asyncio
async def test_track_info_failure_is_shown_then_cleared() -> None:
    player = FakePlayer()
    player.fail_info = True
    ui = make_ui(player)

    await ui.update_track_info()
    assert "Error: API error 401" in rendered_text(ui)

    player.fail_info = False
    await ui.update_track_info()
    text = rendered_text(ui)
    assert "Error" not in text
    assert player.info in text


def test_layout_shows_controls() -> None:
    ui = make_ui(FakePlayer())
    text = rendered_text(ui)

    assert "Play/Pause" in text
    assert SHORTCUTS in text


@pytest.mark.asyncio
async def test_poll_loop_updates_on_interval() -> None:
    player = FakePlayer()
    ui = make_ui(player, interval=0.01)

    task = asyncio.create_task(ui.poll_loop())
    while player.calls.count("info") < 3:
        await asyncio.sleep(0.01)
    ui.stop()
    await asyncio.wait_for(task, timeout=1)

    assert task.done()


@pytest.mark.asyncio
async def test_stop_is_observed_before_next_tick() -> None:
    player = FakePlayer()
    ui = make_ui(player, interval=30)

    task = asyncio.create_task(ui.run(read_keys=False))
    await asyncio.wait_for(player.info_requested.wait(), timeout=1)
    ui.stop()

    await asyncio.wait_for(task, timeout=1)
    assert player.calls == ["info"]


@pytest.mark.asyncio
async def test_handle_input_dispatches_each_key() -> None:
    player = FakePlayer()
    ui = make_ui(player)

    ui.handle_input("n\nb")
    for _ in range(50):
        if player.calls.count("info") == 2:
            break
        await asyncio.sleep(0.01)

    assert [c for c in player.calls if c != "info"] == ["next", "previous"]


@pytest.mark.asyncio
async def test_handle_input_stops_at_quit() -> None:
    player = FakePlayer()
    ui = make_ui(player)

    ui.handle_input("q")
    await asyncio.sleep(0.05)
    ui.handle_input("n")
    await asyncio.sleep(0.05)

    assert ui.stopped is True
    assert player.calls == []
