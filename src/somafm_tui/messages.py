"""Events consumed and effects produced by the control loop.

Events are user input or effect completions. Effects are units of
asynchronous work; every effect except :class:`Chain` and :class:`Exit`
reports back with exactly one event, built by the scheduler from the
collaborator's result or by :meth:`failure` when it raises.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .catalog import CatalogError, ChannelRecord
from .player import PlaybackError, PlayerHandle
from .resolver import ResolutionError


# Events -------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CatalogLoaded:
    channels: tuple[ChannelRecord, ...]


@dataclass(frozen=True, slots=True)
class CatalogFailed:
    error: CatalogError


@dataclass(frozen=True, slots=True)
class KeyUp:
    pass


@dataclass(frozen=True, slots=True)
class KeyDown:
    pass


@dataclass(frozen=True, slots=True)
class KeyActivate:
    pass


@dataclass(frozen=True, slots=True)
class KeyQuit:
    pass


@dataclass(frozen=True, slots=True)
class StreamResolved:
    request_id: int
    stream_url: str


@dataclass(frozen=True, slots=True)
class ResolutionFailed:
    request_id: int
    error: ResolutionError


@dataclass(frozen=True, slots=True)
class PlaybackStarted:
    request_id: int
    handle: PlayerHandle


@dataclass(frozen=True, slots=True)
class PlaybackStopped:
    handle: Optional[PlayerHandle]


@dataclass(frozen=True, slots=True)
class PlaybackFailed:
    """A player failed to start (``request_id``) or to stop (``handle``)."""

    error: PlaybackError
    request_id: Optional[int] = None
    handle: Optional[PlayerHandle] = None


Event = Union[
    CatalogLoaded,
    CatalogFailed,
    KeyUp,
    KeyDown,
    KeyActivate,
    KeyQuit,
    StreamResolved,
    ResolutionFailed,
    PlaybackStarted,
    PlaybackStopped,
    PlaybackFailed,
]


# Effects ------------------------------------------------------------------


def _as(kind: type[RuntimeError], exc: BaseException) -> RuntimeError:
    if isinstance(exc, kind):
        return exc
    return kind(str(exc) or exc.__class__.__name__)


@dataclass(frozen=True, slots=True)
class FetchCatalog:
    def failure(self, exc: BaseException) -> CatalogFailed:
        return CatalogFailed(_as(CatalogError, exc))


@dataclass(frozen=True, slots=True)
class ResolveStream:
    request_id: int
    pointer_url: str

    def failure(self, exc: BaseException) -> ResolutionFailed:
        return ResolutionFailed(self.request_id, _as(ResolutionError, exc))


@dataclass(frozen=True, slots=True)
class StartPlayback:
    request_id: int
    stream_url: str

    def failure(self, exc: BaseException) -> PlaybackFailed:
        return PlaybackFailed(_as(PlaybackError, exc), request_id=self.request_id)


@dataclass(frozen=True, slots=True)
class StopPlayback:
    handle: Optional[PlayerHandle]

    def failure(self, exc: BaseException) -> PlaybackFailed:
        return PlaybackFailed(_as(PlaybackError, exc), handle=self.handle)


@dataclass(frozen=True, slots=True)
class Exit:
    """Terminate the program."""


@dataclass(frozen=True, slots=True)
class Chain:
    """Run ``effects`` one after another.

    Each member is dispatched only after the previous member's completion
    event has been delivered. Members never see each other's results.
    """

    effects: tuple["Effect", ...]

    @classmethod
    def of(cls, *effects: "Effect") -> "Chain":
        return cls(tuple(effects))


Effect = Union[FetchCatalog, ResolveStream, StartPlayback, StopPlayback, Exit, Chain]


__all__ = [
    "CatalogFailed",
    "CatalogLoaded",
    "Chain",
    "Effect",
    "Event",
    "Exit",
    "FetchCatalog",
    "KeyActivate",
    "KeyDown",
    "KeyQuit",
    "KeyUp",
    "PlaybackFailed",
    "PlaybackStarted",
    "PlaybackStopped",
    "ResolutionFailed",
    "ResolveStream",
    "StartPlayback",
    "StopPlayback",
    "StreamResolved",
]
