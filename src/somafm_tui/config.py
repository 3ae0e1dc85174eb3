"""Configuration management for SomaFM TUI."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .catalog import CATALOG_URL
from .logging_utils import get_logger
from .player import PREFERRED_PLAYER_DEFAULT

CONFIG_PATH = Path.home() / ".config" / "somafm_tui" / "config.yaml"
DEFAULT_REQUEST_TIMEOUT = 15.0

log = get_logger(__name__)


@dataclass(slots=True)
class AppConfig:
    """Top level application configuration."""

    catalog_url: str = CATALOG_URL
    player: Optional[str] = PREFERRED_PLAYER_DEFAULT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    theme: Optional[str] = None


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _clean_scalar(value: str) -> str:
    value = value.strip()
    if value.startswith(("'", '"')) and value.endswith(("'", '"')):
        value = value[1:-1]
    return value


def _parse_config(raw: str) -> dict[str, object]:
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        pass
    else:
        return data if isinstance(data, dict) else {}

    result: dict[str, object] = {}
    for line in raw.splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        key, separator, remainder = line.partition(":")
        if not separator:
            log.warning("Ignoring malformed configuration line: %s", line)
            continue
        result[key.strip()] = _clean_scalar(remainder)
    return result


def _parse_timeout(value: object) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        timeout = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if timeout <= 0:
        return None
    return timeout


def _dump_config(data: AppConfig) -> str:
    lines: list[str] = [
        "catalog_url: " + data.catalog_url,
        f"request_timeout: {data.request_timeout:g}",
    ]
    if data.player:
        lines.append("player: " + data.player)
    if data.theme:
        lines.append("theme: " + data.theme)
    lines.append("")
    return "\n".join(lines)


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load configuration from *path* or return the defaults."""

    config_path = path or CONFIG_PATH
    if not config_path.exists():
        log.info("Configuration file missing at %s; using defaults", config_path)
        return AppConfig()
    log.debug("Loading configuration from %s", config_path)
    data = _parse_config(config_path.read_text(encoding="utf8"))
    config = AppConfig()

    catalog_url = data.get("catalog_url")
    if isinstance(catalog_url, str) and catalog_url.strip():
        config.catalog_url = catalog_url.strip()
    elif catalog_url is not None:
        log.warning("Ignoring invalid catalog_url %r", catalog_url)

    player = data.get("player")
    if isinstance(player, str) and player.strip():
        config.player = player.strip()

    if "request_timeout" in data:
        timeout = _parse_timeout(data["request_timeout"])
        if timeout is None:
            log.warning(
                "Ignoring invalid request_timeout %r; using %.1f seconds",
                data["request_timeout"],
                DEFAULT_REQUEST_TIMEOUT,
            )
        else:
            config.request_timeout = timeout

    theme = data.get("theme")
    if isinstance(theme, str) and theme.strip():
        config.theme = theme.strip()

    log.info("Loaded configuration from %s", config_path)
    return config


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    """Persist *config* to disk at *path*."""

    config_path = path or CONFIG_PATH
    _ensure_parent(config_path)
    config_path.write_text(_dump_config(config), encoding="utf8")
    log.info("Configuration saved to %s", config_path)


__all__ = ["AppConfig", "CONFIG_PATH", "load_config", "save_config"]
