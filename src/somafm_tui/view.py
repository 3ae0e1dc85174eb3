"""Project the application state into a text frame."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.text import Text

if TYPE_CHECKING:  # pragma: no cover - only for typing
    from .control import ApplicationState

TITLE_WIDTH = 30
GENRE_WIDTH = 25

HEADER = "🎵 SomaFM Channels"
LOADING = "Loading channels..."
FOOTER = "(↑/↓) Navigate • (enter) Play/Stop • (q) Quit"
CURSOR_MARKER = "> "
ROW_MARKER = "  "


@dataclass(frozen=True, slots=True)
class ViewStyle:
    """Rich style strings used when rendering a frame."""

    title: str = "bold #FF6B6B"
    selected: str = "#4ECDC4"
    error: str = "#FF0000"
    footer: str = ""


def fit(value: str, width: int) -> str:
    """Truncate *value* with an ellipsis and pad it to *width* columns."""

    if len(value) > width - 3:
        value = value[: width - 3] + "..."
    return value.ljust(width)


def format_row(title: str, genre: str, listeners: int, *, is_cursor: bool) -> str:
    marker = CURSOR_MARKER if is_cursor else ROW_MARKER
    return f"{marker}{fit(title, TITLE_WIDTH)} {fit(genre, GENRE_WIDTH)} [{listeners}]"


def render(state: "ApplicationState", style: ViewStyle = ViewStyle()) -> Text:
    """Return the frame for *state*. Never mutates it."""

    frame = Text()
    if state.loading:
        frame.append(LOADING + "\n")
        return frame

    if state.last_error is not None:
        frame.append(f"Error: {state.last_error}\n\n", style=style.error)

    if state.channels:
        frame.append(HEADER + "\n\n", style=style.title)
        for index, channel in enumerate(state.channels):
            is_cursor = index == state.cursor
            line = format_row(channel.title, channel.genre, channel.listeners, is_cursor=is_cursor)
            frame.append(line + "\n", style=style.selected if is_cursor else "")

    if state.is_playing and state.selection is not None:
        frame.append("\n")
        frame.append(f"Now Playing: {state.selection.title}", style=style.title)
        frame.append("\n")

    frame.append("\n" + FOOTER + "\n", style=style.footer)
    return frame


__all__ = ["FOOTER", "GENRE_WIDTH", "TITLE_WIDTH", "ViewStyle", "fit", "format_row", "render"]
