import io
from email.message import Message
from urllib import error

import pytest

from somafm_tui import catalog as catalog_module
from somafm_tui.catalog import CatalogError, ChannelRecord, fetch_catalog, parse_catalog

SAMPLE = b"""<?xml version="1.0" encoding="UTF-8" ?>
<channels>
  <channel id="groovesalad">
    <title><![CDATA[Groove Salad]]></title>
    <description><![CDATA[
        A nicely chilled plate of ambient/downtempo beats and grooves.
    ]]></description>
    <dj>Rusty Hodge</dj>
    <genre>ambient|electronica</genre>
    <image>https://api.somafm.com/img/groovesalad120.png</image>
    <listeners>1873</listeners>
    <fastpls format="mp3">https://somafm.com/groovesalad.pls
https://somafm.com/groovesalad130.pls</fastpls>
  </channel>
  <channel id="dronezone">
    <title>Drone Zone</title>
    <genre>ambient</genre>
    <listeners>not-a-number</listeners>
    <fastpls>https://somafm.com/dronezone.pls</fastpls>
  </channel>
</channels>
"""


def test_parse_catalog_builds_records() -> None:
    groove, drone = parse_catalog(SAMPLE)

    assert groove == ChannelRecord(
        identifier="groovesalad",
        title="Groove Salad",
        description="A nicely chilled plate of ambient/downtempo beats and grooves.",
        genre="ambient|electronica",
        image="https://api.somafm.com/img/groovesalad120.png",
        dj="Rusty Hodge",
        listeners=1873,
        playlist_url="https://somafm.com/groovesalad.pls",
    )
    assert groove.playable
    assert drone.listeners == 0
    assert drone.description == ""
    assert drone.playlist_url == "https://somafm.com/dronezone.pls"


def test_parse_catalog_honours_declared_charset() -> None:
    payload = (
        '<?xml version="1.0" encoding="ISO-8859-1"?>'
        '<channels><channel id="x"><title>Caf\xe9 Radio</title></channel></channels>'
    ).encode("latin-1")

    [record] = parse_catalog(payload, encoding="utf-8")

    assert record.title == "Café Radio"
    assert not record.playable


def test_parse_catalog_uses_header_charset_when_undeclared() -> None:
    payload = '<channels><channel id="x"><title>Caf\xe9</title></channel></channels>'.encode("latin-1")

    [record] = parse_catalog(payload, encoding="iso-8859-1")

    assert record.title == "Café"


def test_parse_catalog_declaration_wins_after_byte_order_mark() -> None:
    payload = b"\xef\xbb\xbf" + (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<channels><channel id="x"><title>Caf\u00e9</title></channel></channels>'
    ).encode("utf-8")

    [record] = parse_catalog(payload, encoding="iso-8859-1")

    assert record.title == "Café"


def test_parse_catalog_rejects_garbage() -> None:
    with pytest.raises(CatalogError):
        parse_catalog(b"<html><body>oops")


def test_parse_catalog_rejects_unexpected_root() -> None:
    with pytest.raises(CatalogError):
        parse_catalog(b"<playlists/>")


class FakeResponse(io.BytesIO):
    def __init__(self, payload: bytes, content_type: str = "text/xml; charset=utf-8") -> None:
        super().__init__(payload)
        self.headers = Message()
        self.headers["Content-Type"] = content_type


def test_fetch_catalog_downloads_and_parses(monkeypatch) -> None:
    requests = []

    def fake_urlopen(req, timeout):
        requests.append((req.full_url, timeout, req.get_header("User-agent")))
        return FakeResponse(SAMPLE)

    monkeypatch.setattr(catalog_module.request, "urlopen", fake_urlopen)

    channels = fetch_catalog(timeout=3.0)

    assert [channel.identifier for channel in channels] == ["groovesalad", "dronezone"]
    assert requests == [("https://somafm.com/channels.xml", 3.0, "somafm-tui")]


def test_fetch_catalog_wraps_network_errors(monkeypatch) -> None:
    def fake_urlopen(req, timeout):
        raise error.URLError("network unreachable")

    monkeypatch.setattr(catalog_module.request, "urlopen", fake_urlopen)

    with pytest.raises(CatalogError) as excinfo:
        fetch_catalog("https://example.invalid/channels.xml")

    assert "network unreachable" in str(excinfo.value)
