from __future__ import annotations

import itertools
from types import SimpleNamespace

import pytest

from somafm_tui.catalog import ChannelRecord
from somafm_tui.player import PlayerCommand, PlayerHandle

_pids = itertools.count(1000)


def make_channel(identifier: str, *, title: str | None = None, genre: str = "ambient", listeners: int = 10) -> ChannelRecord:
    return ChannelRecord(
        identifier=identifier,
        title=title or identifier.title(),
        genre=genre,
        listeners=listeners,
        playlist_url=f"https://somafm.com/{identifier}.pls",
    )


def make_handle(stream_url: str = "http://stream.example/a") -> PlayerHandle:
    process = SimpleNamespace(pid=next(_pids), returncode=None)
    return PlayerHandle(
        process=process,  # type: ignore[arg-type]
        command=PlayerCommand("mpv", ["--no-terminal", stream_url]),
        stream_url=stream_url,
    )


@pytest.fixture
def channels() -> tuple[ChannelRecord, ...]:
    return (
        make_channel("groovesalad", title="Groove Salad"),
        make_channel("dronezone", title="Drone Zone"),
        make_channel("lush", title="Lush"),
    )
