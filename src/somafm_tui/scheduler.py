"""Run control-loop effects concurrently and report their outcomes."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from . import catalog, player, resolver
from .catalog import ChannelRecord
from .config import AppConfig
from .logging_utils import get_logger
from .messages import (
    CatalogLoaded,
    Chain,
    Effect,
    Event,
    Exit,
    FetchCatalog,
    PlaybackStarted,
    PlaybackStopped,
    ResolveStream,
    StartPlayback,
    StopPlayback,
    StreamResolved,
)
from .player import PlayerHandle

log = get_logger(__name__)


@dataclass(slots=True)
class Collaborators:
    """The I/O adapters effects are executed with."""

    fetch_catalog: Callable[[], Awaitable[tuple[ChannelRecord, ...]]]
    resolve: Callable[[str], Awaitable[str]]
    start: Callable[[str], Awaitable[PlayerHandle]]
    stop: Callable[[Optional[PlayerHandle]], Awaitable[None]]

    @classmethod
    def default(cls, config: Optional[AppConfig] = None) -> "Collaborators":
        """Wire the network and process adapters described by *config*."""

        config = config or AppConfig()

        async def fetch() -> tuple[ChannelRecord, ...]:
            return await asyncio.to_thread(
                catalog.fetch_catalog, config.catalog_url, timeout=config.request_timeout
            )

        async def resolve(pointer_url: str) -> str:
            return await asyncio.to_thread(
                resolver.resolve_stream_url, pointer_url, timeout=config.request_timeout
            )

        async def start(stream_url: str) -> PlayerHandle:
            return await player.launch_player(stream_url, preferred=config.player)

        return cls(fetch_catalog=fetch, resolve=resolve, start=start, stop=player.stop_player)


class EffectScheduler:
    """Execute effects off the control loop and deliver one event per effect.

    Top-level effects run as independent tasks so unrelated work is never
    serialized; members of a :class:`Chain` run strictly in order.
    """

    def __init__(
        self,
        collaborators: Collaborators,
        deliver: Callable[[Event], None],
        on_exit: Callable[[], None],
    ) -> None:
        self._collaborators = collaborators
        self._deliver = deliver
        self._on_exit = on_exit
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        """Return the number of effect tasks still running."""

        return len(self._tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, effects: Iterable[Effect]) -> None:
        """Start every effect in *effects* concurrently."""

        if self._closed:
            return
        for effect in effects:
            task = asyncio.create_task(self._run(effect), name=f"effect:{type(effect).__name__}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, effect: Effect) -> Optional[Exception]:
        """Run *effect* and return the error it failed with, if any."""

        if isinstance(effect, Chain):
            failure: Optional[Exception] = None
            for member in effect.effects:
                if self._closed:
                    return failure
                if failure is not None:
                    self._skip(member, failure)
                    continue
                failure = await self._run(member)
            return failure
        if isinstance(effect, Exit):
            log.info("Exit effect reached")
            self._on_exit()
            return None
        event = await self._execute(effect)
        error = getattr(event, "error", None)
        if self._closed:
            log.debug("Dropping %s completed after shutdown", type(event).__name__)
            if isinstance(event, PlaybackStarted):
                await self._collaborators.stop(event.handle)
            return error
        self._deliver(event)
        return error

    def _skip(self, effect: Effect, cause: Exception) -> None:
        """Abandon a chain member queued behind a failed one.

        ``Exit`` still runs so quitting works. A skipped stop reports nothing
        since its player is still tracked; other effects report a failure.
        """

        if isinstance(effect, Chain):
            for member in effect.effects:
                self._skip(member, cause)
            return
        if isinstance(effect, Exit):
            log.info("Exit effect reached after failed step")
            self._on_exit()
            return
        log.warning("Skipping %s after failed step: %s", effect, cause)
        if isinstance(effect, StopPlayback):
            return
        self._deliver(effect.failure(RuntimeError(f"skipped after earlier failure: {cause}")))

    async def _execute(self, effect: Effect) -> Event:
        collaborators = self._collaborators
        log.debug("Executing %s", effect)
        try:
            if isinstance(effect, FetchCatalog):
                return CatalogLoaded(await collaborators.fetch_catalog())
            if isinstance(effect, ResolveStream):
                url = await collaborators.resolve(effect.pointer_url)
                return StreamResolved(effect.request_id, url)
            if isinstance(effect, StartPlayback):
                handle = await collaborators.start(effect.stream_url)
                return PlaybackStarted(effect.request_id, handle)
            if isinstance(effect, StopPlayback):
                await collaborators.stop(effect.handle)
                return PlaybackStopped(effect.handle)
        except (catalog.CatalogError, resolver.ResolutionError, player.PlaybackError) as exc:
            log.error("%s failed: %s", type(effect).__name__, exc)
            return effect.failure(exc)
        except Exception as exc:
            log.exception("Unexpected error while executing %s", effect)
            return effect.failure(exc)
        raise TypeError(f"Unsupported effect {effect!r}")

    async def close(self) -> None:
        """Cancel outstanding effects; later completions are dropped."""

        self._closed = True
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        log.debug("Effect scheduler closed (%d task(s) cancelled)", len(tasks))


__all__ = ["Collaborators", "EffectScheduler"]
