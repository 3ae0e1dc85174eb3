"""Fetching and parsing the SomaFM channel catalog."""
from __future__ import annotations

import http.client
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional
from urllib import error, request

from .logging_utils import get_logger

log = get_logger(__name__)

CATALOG_URL = "https://somafm.com/channels.xml"
DEFAULT_TIMEOUT = 15.0
USER_AGENT = "somafm-tui"

_DECLARED_ENCODING = re.compile(rb"^(?:\xef\xbb\xbf)?\s*<\?xml[^>]*encoding=[\"']([A-Za-z0-9._-]+)[\"']")


class CatalogError(RuntimeError):
    """Raised when the channel catalog cannot be fetched or decoded."""


@dataclass(frozen=True, slots=True)
class ChannelRecord:
    """A single channel entry from the catalog."""

    identifier: str
    title: str
    description: str = ""
    genre: str = ""
    image: str = ""
    dj: str = ""
    listeners: int = 0
    playlist_url: str = ""

    @property
    def playable(self) -> bool:
        """Return True if the record can be resolved and played."""

        return bool(self.identifier and self.playlist_url)


def _text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text


def _first_line(value: str) -> str:
    for line in value.strip().splitlines():
        return line.strip()
    return ""


def _coerce_listeners(value: str) -> int:
    try:
        listeners = int(value.strip())
    except ValueError:
        return 0
    return max(0, listeners)


def _record_from_element(element: ET.Element) -> ChannelRecord:
    return ChannelRecord(
        identifier=(element.get("id") or "").strip(),
        title=_text(element, "title").strip(),
        description=_text(element, "description").strip(),
        genre=_text(element, "genre").strip(),
        image=_text(element, "image").strip(),
        dj=_text(element, "dj").strip(),
        listeners=_coerce_listeners(_text(element, "listeners")),
        playlist_url=_first_line(_text(element, "fastpls")),
    )


def parse_catalog(payload: bytes, *, encoding: Optional[str] = None) -> tuple[ChannelRecord, ...]:
    """Parse the catalog XML document in *payload*.

    The charset declared by the document wins; *encoding* (usually taken from
    the HTTP ``Content-Type`` header) is only used for undeclared documents,
    which otherwise default to UTF-8.
    """

    declared = _DECLARED_ENCODING.match(payload)
    parser_encoding = None if declared else encoding
    try:
        parser = ET.XMLParser(encoding=parser_encoding)
        root = ET.fromstring(payload, parser=parser)
    except (ET.ParseError, LookupError, ValueError) as exc:
        raise CatalogError(f"Invalid channel catalog: {exc}") from exc
    if root.tag != "channels":
        raise CatalogError(f"Unexpected catalog root element <{root.tag}>")
    channels = tuple(_record_from_element(element) for element in root.findall("channel"))
    log.debug("Parsed %d channel record(s)", len(channels))
    return channels


def _download(url: str, timeout: float) -> tuple[bytes, Optional[str]]:
    log.debug("Fetching catalog from %s (timeout=%s)", url, timeout)
    req = request.Request(url)
    req.add_header("User-Agent", USER_AGENT)
    with request.urlopen(req, timeout=timeout) as response:  # type: ignore[call-arg]
        payload = response.read()
        charset = response.headers.get_content_charset()
    log.debug("Received %d bytes (charset=%s)", len(payload), charset)
    return payload, charset


def fetch_catalog(url: str = CATALOG_URL, *, timeout: float = DEFAULT_TIMEOUT) -> tuple[ChannelRecord, ...]:
    """Download and parse the channel catalog."""

    log.info("Requesting channel catalog from %s", url)
    try:
        payload, charset = _download(url, timeout)
    except (error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
        log.error("Failed to fetch catalog from %s: %s", url, exc)
        raise CatalogError(str(exc)) from exc
    channels = parse_catalog(payload, encoding=charset)
    log.info("Loaded %d channels from %s", len(channels), url)
    return channels


__all__ = [
    "CATALOG_URL",
    "CatalogError",
    "ChannelRecord",
    "fetch_catalog",
    "parse_catalog",
]
