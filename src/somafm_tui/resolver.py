"""Resolve PLS playlist pointers into playable stream URLs."""
from __future__ import annotations

import http.client
import re
from typing import Iterable
from urllib import error, request

from .logging_utils import get_logger

log = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

_FILE_ENTRY = re.compile(r"File1=(.+)")


class ResolutionError(RuntimeError):
    """Raised when a playlist pointer does not yield a stream URL."""


def parse_pointer_document(lines: Iterable[str]) -> str:
    """Return the ``File1`` entry from a PLS document."""

    for line in lines:
        match = _FILE_ENTRY.search(line)
        if match:
            stream_url = match.group(1).strip()
            if stream_url:
                return stream_url
    raise ResolutionError("no stream URL found in PLS file")


def _fetch_pointer(url: str, timeout: float) -> str:
    req = request.Request(url)
    with request.urlopen(req, timeout=timeout) as response:  # type: ignore[call-arg]
        charset = response.headers.get_content_charset() or "utf8"
        return response.read().decode(charset, errors="replace")


def resolve_stream_url(pointer_url: str, *, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Download the PLS document at *pointer_url* and return its stream URL."""

    if not pointer_url:
        raise ResolutionError("channel has no playlist URL")
    log.debug("Resolving stream URL from %s", pointer_url)
    try:
        text = _fetch_pointer(pointer_url, timeout)
    except (error.URLError, http.client.HTTPException, OSError, LookupError, ValueError) as exc:
        log.error("Failed to fetch playlist %s: %s", pointer_url, exc)
        raise ResolutionError(str(exc)) from exc
    stream_url = parse_pointer_document(text.splitlines())
    log.info("Resolved %s to %s", pointer_url, stream_url)
    return stream_url


__all__ = ["ResolutionError", "parse_pointer_document", "resolve_stream_url"]
