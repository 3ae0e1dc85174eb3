"""Textual application hosting the SomaFM control loop."""
from __future__ import annotations

from typing import Optional

try:
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import VerticalScroll
    from textual.message import Message
    from textual.widgets import Static
except ModuleNotFoundError as exc:  # pragma: no cover - dependency guard
    raise ModuleNotFoundError(
        "The 'textual' package is required to run somafm_tui. "
        "Install dependencies with 'pip install -e .[dev]' or 'pip install somafm-tui'."
    ) from exc

from .config import AppConfig
from .control import ApplicationState, ControlLoop
from .logging_utils import configure_logging, get_logger
from .messages import Event, KeyActivate, KeyDown, KeyQuit, KeyUp
from .player import PlaybackError
from .scheduler import Collaborators, EffectScheduler
from .themes import CUSTOM_THEMES, DEFAULT_THEME_NAME, style_for_theme
from .view import render

log = get_logger(__name__)

DEFAULT_CSS = """
#frame-scroll {
    height: 1fr;
    padding: 0 1;
}

#frame {
    width: auto;
}
"""

# Rows above the first channel: the title line and the blank line under it.
_HEADER_ROWS = 2
_ERROR_ROWS = 2


class ControlEvent(Message):
    """Carries a control-loop event through the app's message queue."""

    def __init__(self, event: Event) -> None:
        super().__init__()
        self.event = event


class SomaFMApp(App[None]):
    """Main Textual application."""

    CSS = DEFAULT_CSS
    TITLE = "SomaFM"
    BINDINGS = [
        Binding("up,k", "cursor_up", "Up", show=False, priority=True),
        Binding("down,j", "cursor_down", "Down", show=False, priority=True),
        Binding("enter,space", "activate", "Play/Stop", show=False, priority=True),
        Binding("q,ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        collaborators: Optional[Collaborators] = None,
        theme: Optional[str] = None,
    ) -> None:
        super().__init__()
        self._config = config or AppConfig()
        self._register_custom_themes()
        self._apply_requested_theme(theme or self._config.theme)
        self.frame_style = style_for_theme(self.theme)
        self._collaborators = collaborators or Collaborators.default(self._config)
        self.control_loop = ControlLoop()
        self.effects = EffectScheduler(
            self._collaborators,
            deliver=self.deliver,
            on_exit=self.exit,
        )
        log.info("SomaFMApp initialized; catalog=%s", self._config.catalog_url)

    def _register_custom_themes(self) -> None:
        for theme in CUSTOM_THEMES.values():
            self.register_theme(theme)

    def _apply_requested_theme(self, requested: Optional[str]) -> None:
        preferred = requested or DEFAULT_THEME_NAME
        theme = self.get_theme(preferred)
        if theme is None:
            if requested:
                log.warning(
                    "Requested theme '%s' is unavailable; falling back to %s",
                    requested,
                    DEFAULT_THEME_NAME,
                )
            self.theme = DEFAULT_THEME_NAME
            return
        log.debug("Applying theme %s", theme.name)
        self.theme = theme.name

    @property
    def app_state(self) -> ApplicationState:
        return self.control_loop.state

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="frame-scroll"):
            yield Static(id="frame")

    def on_mount(self) -> None:
        log.debug("Application mounted")
        configure_logging(console=False)
        self.effects.schedule(self.control_loop.initial_effects())
        self._refresh_frame()

    async def on_unmount(self) -> None:
        await self.effects.close()
        handle = self.app_state.handle
        if handle is not None and handle.process.returncode is None:
            log.info("Stopping player PID %s on shutdown", handle.pid)
            try:
                await self._collaborators.stop(handle)
            except PlaybackError as exc:
                log.error("Failed to stop player on shutdown: %s", exc)

    def deliver(self, event: Event) -> None:
        """Queue *event* for the control loop."""

        self.post_message(ControlEvent(event))

    def on_control_event(self, message: ControlEvent) -> None:
        effects = self.control_loop.dispatch(message.event)
        if effects:
            log.debug("%s scheduled %s", type(message.event).__name__, effects)
            self.effects.schedule(effects)
        self._refresh_frame()

    def _refresh_frame(self) -> None:
        try:
            frame = self.query_one("#frame", Static)
        except Exception:  # pragma: no cover - frame missing during shutdown
            return
        frame.update(render(self.app_state, self.frame_style))
        self.call_after_refresh(self._scroll_to_cursor)

    def _scroll_to_cursor(self) -> None:
        state = self.app_state
        if state.loading or not state.channels:
            return
        line = _HEADER_ROWS + state.cursor
        if state.last_error is not None:
            line += _ERROR_ROWS
        try:
            scroller = self.query_one("#frame-scroll", VerticalScroll)
        except Exception:  # pragma: no cover - frame missing during shutdown
            return
        height = scroller.scrollable_content_region.height or 1
        if line < scroller.scroll_y:
            scroller.scroll_to(y=line, animate=False)
        elif line >= scroller.scroll_y + height:
            scroller.scroll_to(y=line - height + 1, animate=False)

    def action_cursor_up(self) -> None:
        self.deliver(KeyUp())

    def action_cursor_down(self) -> None:
        self.deliver(KeyDown())

    def action_activate(self) -> None:
        self.deliver(KeyActivate())

    async def action_quit(self) -> None:
        self.deliver(KeyQuit())


__all__ = ["ControlEvent", "SomaFMApp"]
