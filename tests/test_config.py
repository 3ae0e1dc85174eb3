from pathlib import Path

from somafm_tui.catalog import CATALOG_URL
from somafm_tui.config import AppConfig, load_config, save_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path / "config.yaml")
    assert config == AppConfig()
    assert config.catalog_url == CATALOG_URL
    assert config.player == "mpv"
    assert config.request_timeout == 15.0
    assert config.theme is None


def test_load_and_save_round_trip(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "config.yaml"
    config = AppConfig(
        catalog_url="https://mirror.example/channels.xml",
        player="vlc",
        request_timeout=4.5,
        theme="solarized-light",
    )
    save_config(config, config_path)
    raw = config_path.read_text()
    assert "theme: solarized-light" in raw.splitlines()
    assert load_config(config_path) == config


def test_load_config_accepts_flat_key_value_lines(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "# local overrides\n"
        "player: 'ffplay'\n"
        "request_timeout: 30\n"
        "\n"
        "theme: \"solarized-dark\"\n",
        encoding="utf8",
    )
    config = load_config(config_path)
    assert config.player == "ffplay"
    assert config.request_timeout == 30.0
    assert config.theme == "solarized-dark"
    assert config.catalog_url == CATALOG_URL


def test_load_config_accepts_json(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text('{"catalog_url": "http://localhost/channels.xml", "request_timeout": 2}')
    config = load_config(config_path)
    assert config.catalog_url == "http://localhost/channels.xml"
    assert config.request_timeout == 2.0


def test_load_config_ignores_invalid_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "this line has no separator\n"
        "request_timeout: -3\n"
        "player:\n"
        "catalog_url:   \n",
        encoding="utf8",
    )
    config = load_config(config_path)
    assert config == AppConfig()


def test_load_config_rejects_boolean_timeout(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text('{"request_timeout": true}')
    assert load_config(config_path).request_timeout == 15.0
