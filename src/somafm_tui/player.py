"""Player detection, spawning and termination helpers."""
from __future__ import annotations

import asyncio
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .logging_utils import get_logger


PREFERRED_PLAYER_DEFAULT = "mpv"

DEFAULT_PLAYER_CANDIDATES: Sequence[str] = ("mpv", "vlc", "ffplay")

# Flags that keep each player from drawing its own terminal UI over ours.
QUIET_FLAGS: dict[str, tuple[str, ...]] = {
    "mpv": ("--no-terminal",),
    "vlc": ("-I", "dummy", "--quiet"),
    "cvlc": ("--quiet",),
    "ffplay": ("-nodisp", "-loglevel", "quiet"),
}

PLAYER_PROBE_TIMEOUT_ENV = "SOMAFM_TUI_PLAYER_PROBE_TIMEOUT"
DEFAULT_PLAYER_PROBE_TIMEOUT = 10.0
STOP_WAIT_TIMEOUT = 5.0


log = get_logger(__name__)


class PlaybackError(RuntimeError):
    """Raised when a player process cannot be started or stopped."""


@dataclass(slots=True)
class PlayerCommand:
    """Describe a player invocation."""

    executable: str
    args: list[str]

    def as_sequence(self) -> list[str]:
        return [self.executable, *self.args]


@dataclass(slots=True, eq=False)
class PlayerHandle:
    """Return value from :func:`launch_player` owning the player process.

    Handles compare by identity; two launches of the same URL are different
    sessions.
    """

    process: asyncio.subprocess.Process
    command: PlayerCommand
    stream_url: str

    @property
    def pid(self) -> Optional[int]:
        return getattr(self.process, "pid", None)


def detect_player(
    preferred: Optional[str] = None,
    *,
    candidates: Iterable[str] = DEFAULT_PLAYER_CANDIDATES,
) -> Optional[str]:
    """Return the path to the first available player executable."""

    search_order: list[str] = []
    if preferred:
        preferred_str = str(preferred)
        log.debug("Preferred player requested: %s", preferred_str)
        search_order.append(preferred_str)
    for candidate in candidates:
        if candidate not in search_order:
            search_order.append(candidate)
    for executable in search_order:
        path = shutil.which(executable)
        if path:
            log.info("Selected player executable: %s (from candidate %s)", path, executable)
            return path
        log.debug("Player candidate %s not found on PATH", executable)
    return None


def build_player_command(stream_url: str, *, preferred: Optional[str] = None) -> PlayerCommand:
    """Construct a player command for *stream_url*."""

    executable = detect_player(preferred)
    if executable is None:
        log.error("Unable to locate supported media player")
        raise PlaybackError("No supported media player found (mpv, vlc, ffplay)")
    executable_name = Path(executable).name.lower()
    if executable_name.endswith(".exe"):
        executable_name = executable_name[: -len(".exe")]
    args = [*QUIET_FLAGS.get(executable_name, ()), stream_url]
    command = PlayerCommand(executable=executable, args=args)
    log.info("Built player command: %s", command.as_sequence())
    return command


async def launch_player(stream_url: str, *, preferred: Optional[str] = None) -> PlayerHandle:
    """Launch a media player for *stream_url*."""

    command = build_player_command(stream_url, preferred=preferred)
    env = os.environ.copy()
    log.info("Launching player process for %s", stream_url)
    try:
        process = await asyncio.create_subprocess_exec(
            *command.as_sequence(),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            env=env,
        )
    except OSError as exc:
        log.error("Failed to launch %s: %s", command.executable, exc)
        raise PlaybackError(f"Failed to launch {command.executable}: {exc}") from exc
    log.debug("Spawned process PID %s", getattr(process, "pid", "unknown"))
    return PlayerHandle(process=process, command=command, stream_url=stream_url)


async def stop_player(handle: Optional[PlayerHandle], *, timeout: float = STOP_WAIT_TIMEOUT) -> None:
    """Kill the process behind *handle* and reap it.

    Stopping ``None`` or a process that already exited is not an error.
    """

    if handle is None:
        return
    process = handle.process
    if process.returncode is not None:
        log.debug("Player PID %s already exited with %s", handle.pid, process.returncode)
        return
    log.info("Stopping player PID %s", handle.pid)
    try:
        process.kill()
    except ProcessLookupError:
        log.debug("Player PID %s vanished before kill", handle.pid)
        return
    except OSError as exc:
        raise PlaybackError(f"Failed to stop player: {exc}") from exc
    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise PlaybackError(
            f"Player PID {handle.pid} did not exit within {timeout:.1f} seconds"
        ) from exc


def _player_probe_timeout() -> float:
    """Return the timeout to use for player probes."""

    raw_value = os.getenv(PLAYER_PROBE_TIMEOUT_ENV)
    if raw_value is None:
        return DEFAULT_PLAYER_PROBE_TIMEOUT
    try:
        timeout = float(raw_value)
    except ValueError:
        log.warning(
            "Invalid %s value %r; using default %.1f seconds",
            PLAYER_PROBE_TIMEOUT_ENV,
            raw_value,
            DEFAULT_PLAYER_PROBE_TIMEOUT,
        )
        return DEFAULT_PLAYER_PROBE_TIMEOUT
    if timeout <= 0:
        log.warning(
            "Probe timeout %.1f from %s must be positive; using default",
            timeout,
            PLAYER_PROBE_TIMEOUT_ENV,
        )
        return DEFAULT_PLAYER_PROBE_TIMEOUT
    return timeout


def probe_player(preferred: Optional[str] = None) -> str:
    """Invoke the preferred player with ``--version`` to verify availability."""

    executable = detect_player(preferred)
    if executable is None:
        raise PlaybackError("No supported media player found (mpv, vlc, ffplay)")
    timeout = _player_probe_timeout()
    try:
        result = subprocess.run(
            [executable, "--version"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise PlaybackError(
            (
                f"{Path(executable).name} --version timed out after {timeout:.1f} seconds. "
                f"Increase the timeout via the {PLAYER_PROBE_TIMEOUT_ENV} environment variable "
                "or run the command manually."
            )
        ) from exc
    except OSError as exc:
        raise PlaybackError(f"Failed to execute {executable}: {exc}") from exc
    if result.returncode != 0:
        output = result.stderr.strip() or result.stdout.strip()
        raise PlaybackError(
            f"{Path(executable).name} --version exited with {result.returncode}: {output}"
        )
    output = result.stdout.strip() or result.stderr.strip()
    summary = output.splitlines()[0] if output else Path(executable).name
    log.info("Player probe succeeded using %s: %s", executable, summary)
    return summary


__all__ = [
    "PREFERRED_PLAYER_DEFAULT",
    "PlaybackError",
    "PlayerCommand",
    "PlayerHandle",
    "build_player_command",
    "detect_player",
    "launch_player",
    "probe_player",
    "stop_player",
]
