"""The control loop: application state and its transitions.

:class:`ControlLoop` is the only code that mutates :class:`ApplicationState`.
Each call to :meth:`ControlLoop.dispatch` handles one event synchronously and
returns the effects to schedule; it never performs I/O itself.
"""
from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from .catalog import CatalogError, ChannelRecord
from .logging_utils import get_logger
from .messages import (
    CatalogFailed,
    CatalogLoaded,
    Chain,
    Effect,
    Event,
    Exit,
    FetchCatalog,
    KeyActivate,
    KeyDown,
    KeyQuit,
    KeyUp,
    PlaybackFailed,
    PlaybackStarted,
    PlaybackStopped,
    ResolutionFailed,
    ResolveStream,
    StartPlayback,
    StopPlayback,
    StreamResolved,
)
from .player import PlaybackError, PlayerHandle
from .resolver import ResolutionError

log = get_logger(__name__)


class Phase(enum.Enum):
    STOPPED = "stopped"
    PLAYING = "playing"


@dataclass(frozen=True, slots=True)
class PlaybackRequest:
    """A switch the user asked for that has not started playing yet."""

    request_id: int
    channel: ChannelRecord


@dataclass(slots=True)
class ApplicationState:
    """Single source of truth for the running application."""

    channels: tuple[ChannelRecord, ...] = ()
    cursor: int = 0
    selection: Optional[ChannelRecord] = None
    phase: Phase = Phase.STOPPED
    handle: Optional[PlayerHandle] = None
    loading: bool = True
    last_error: Optional[Exception] = None
    pending: Optional[PlaybackRequest] = None
    # At most one player spawn is in flight; a later start waits in deferred.
    starting: Optional[int] = None
    deferred: Optional[StartPlayback] = None
    quitting: bool = False

    @property
    def current_channel(self) -> Optional[ChannelRecord]:
        """Return the channel under the cursor, if any."""

        if not self.channels:
            return None
        return self.channels[self.cursor]

    @property
    def is_playing(self) -> bool:
        return self.phase is Phase.PLAYING


@dataclass(slots=True)
class ControlLoop:
    """Turn events into state transitions and follow-up effects."""

    state: ApplicationState = field(default_factory=ApplicationState)
    _request_ids: Iterator[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    def initial_effects(self) -> list[Effect]:
        return [FetchCatalog()]

    def dispatch(self, event: Event) -> list[Effect]:
        """Apply *event* to the state and return effects to schedule."""

        if self.state.quitting and not isinstance(event, PlaybackStarted):
            log.debug("Ignoring %s received after quit", type(event).__name__)
            return []
        handler = self._handlers().get(type(event))
        if handler is None:
            log.warning("No handler for event %r", event)
            return []
        return handler(event)

    def _handlers(self) -> dict[type, Callable[..., list[Effect]]]:
        return {
            CatalogLoaded: self._on_catalog_loaded,
            CatalogFailed: self._on_catalog_failed,
            KeyUp: self._on_key_up,
            KeyDown: self._on_key_down,
            KeyActivate: self._on_key_activate,
            KeyQuit: self._on_key_quit,
            StreamResolved: self._on_stream_resolved,
            ResolutionFailed: self._on_resolution_failed,
            PlaybackStarted: self._on_playback_started,
            PlaybackStopped: self._on_playback_stopped,
            PlaybackFailed: self._on_playback_failed,
        }

    # Catalog ---------------------------------------------------------------

    def _on_catalog_loaded(self, event: CatalogLoaded) -> list[Effect]:
        state = self.state
        state.channels = tuple(event.channels)
        state.cursor = min(state.cursor, max(len(state.channels) - 1, 0))
        state.loading = False
        self._clear_error(CatalogError)
        log.info("Catalog loaded with %d channel(s)", len(state.channels))
        return []

    def _on_catalog_failed(self, event: CatalogFailed) -> list[Effect]:
        self.state.loading = False
        self.state.last_error = event.error
        log.error("Catalog fetch failed: %s", event.error)
        return []

    # Cursor ----------------------------------------------------------------

    def _move_cursor(self, delta: int) -> list[Effect]:
        state = self.state
        if not state.channels:
            return []
        state.cursor = max(0, min(len(state.channels) - 1, state.cursor + delta))
        return []

    def _on_key_up(self, _: KeyUp) -> list[Effect]:
        return self._move_cursor(-1)

    def _on_key_down(self, _: KeyDown) -> list[Effect]:
        return self._move_cursor(1)

    # Play / stop -----------------------------------------------------------

    def _on_key_activate(self, _: KeyActivate) -> list[Effect]:
        state = self.state
        channel = state.current_channel
        if channel is None:
            return []

        if (
            state.is_playing
            and state.selection is not None
            and state.selection.identifier == channel.identifier
        ):
            log.info("Stopping %s", channel.title)
            state.selection = None
            state.pending = None
            state.deferred = None
            return [StopPlayback(state.handle)]

        if not channel.playable:
            state.last_error = ResolutionError(f"{channel.title or 'channel'} has no playable stream")
            log.warning("Channel %r is not playable", channel.identifier)
            return []

        request = PlaybackRequest(next(self._request_ids), channel)
        state.pending = request
        state.deferred = None
        resolve = ResolveStream(request.request_id, channel.playlist_url)
        log.info("Switching to %s (request %d)", channel.title, request.request_id)
        if state.handle is not None:
            return [Chain.of(StopPlayback(state.handle), resolve)]
        return [resolve]

    def _on_stream_resolved(self, event: StreamResolved) -> list[Effect]:
        state = self.state
        if not self._is_pending(event.request_id):
            log.debug("Discarding stale resolution for request %d", event.request_id)
            return []
        self._clear_error(ResolutionError)
        start = StartPlayback(event.request_id, event.stream_url)
        if state.starting is not None:
            # The earlier player has to exist before it can be stopped.
            log.info(
                "Deferring request %d until request %d has started",
                event.request_id,
                state.starting,
            )
            state.deferred = start
            return []
        return self._start(start)

    def _on_resolution_failed(self, event: ResolutionFailed) -> list[Effect]:
        state = self.state
        if not self._is_pending(event.request_id):
            log.debug(
                "Discarding stale resolution failure for request %d: %s",
                event.request_id,
                event.error,
            )
            return []
        state.pending = None
        state.last_error = event.error
        log.error("Stream resolution failed: %s", event.error)
        return []

    def _on_playback_started(self, event: PlaybackStarted) -> list[Effect]:
        state = self.state
        if state.starting == event.request_id:
            state.starting = None
        pending = state.pending
        if state.quitting or pending is None or pending.request_id != event.request_id:
            # Never adopt a process nobody asked for any more.
            log.info("Stopping orphaned player PID %s", event.handle.pid)
            return self._release_deferred(StopPlayback(event.handle))
        effects: list[Effect] = []
        if state.handle is not None and state.handle is not event.handle:
            log.warning("Replacing player PID %s that was never confirmed stopped", state.handle.pid)
            effects.append(StopPlayback(state.handle))
        state.phase = Phase.PLAYING
        state.handle = event.handle
        state.selection = pending.channel
        state.pending = None
        self._clear_error(PlaybackError)
        log.info("Now playing %s (PID %s)", pending.channel.title, event.handle.pid)
        return effects

    def _on_playback_stopped(self, event: PlaybackStopped) -> list[Effect]:
        state = self.state
        if state.handle is not None and event.handle is not state.handle:
            log.debug("Ignoring stop confirmation for untracked player")
            return []
        state.phase = Phase.STOPPED
        state.handle = None
        state.selection = None
        self._clear_error(PlaybackError)
        log.info("Playback stopped")
        return []

    def _on_playback_failed(self, event: PlaybackFailed) -> list[Effect]:
        state = self.state
        state.last_error = event.error
        if event.request_id is not None and state.starting == event.request_id:
            state.starting = None
        if event.handle is not None and event.handle is state.handle:
            log.error("Player PID %s could not be stopped: %s", event.handle.pid, event.error)
            state.phase = Phase.STOPPED
            state.handle = None
            state.selection = None
            state.pending = None
            state.deferred = None
            return []
        if event.request_id is not None and self._is_pending(event.request_id):
            log.error("Playback failed: %s", event.error)
            state.pending = None
            return []
        log.warning("Playback failure outside the active session: %s", event.error)
        return self._release_deferred()

    # Quit ------------------------------------------------------------------

    def _on_key_quit(self, _: KeyQuit) -> list[Effect]:
        state = self.state
        state.quitting = True
        state.pending = None
        state.deferred = None
        if state.handle is not None:
            log.info("Quit requested; stopping player first")
            return [Chain.of(StopPlayback(state.handle), Exit())]
        log.info("Quit requested")
        return [Exit()]

    # Helpers ---------------------------------------------------------------

    def _start(self, start: StartPlayback, *stops: StopPlayback) -> list[Effect]:
        """Emit *start* after *stops* and after stopping the held player."""

        state = self.state
        state.starting = start.request_id
        before = list(stops)
        if state.handle is not None:
            before.append(StopPlayback(state.handle))
        if before:
            return [Chain.of(*before, start)]
        return [start]

    def _release_deferred(self, *stops: StopPlayback) -> list[Effect]:
        state = self.state
        deferred, state.deferred = state.deferred, None
        if deferred is None or not self._is_pending(deferred.request_id):
            return list(stops)
        log.info("Starting deferred request %d", deferred.request_id)
        return self._start(deferred, *stops)

    def _is_pending(self, request_id: int) -> bool:
        pending = self.state.pending
        return pending is not None and pending.request_id == request_id

    def _clear_error(self, kind: type[Exception]) -> None:
        if isinstance(self.state.last_error, kind):
            self.state.last_error = None


__all__ = ["ApplicationState", "ControlLoop", "Phase", "PlaybackRequest"]
