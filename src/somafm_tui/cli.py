"""Command line entry point for SomaFM TUI."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable

from . import __version__
from .app import SomaFMApp
from .config import CONFIG_PATH, load_config, save_config
from .logging_utils import configure_logging, get_logger
from .player import PlaybackError, probe_player
from .themes import CUSTOM_THEMES

log = get_logger(__name__)


def _sorted_theme_names() -> list[str]:
    """Return the bundled theme catalog in a consistent order."""

    return sorted(CUSTOM_THEMES)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse and play SomaFM channels")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help="Path to configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override SOMAFM_TUI_LOG_LEVEL for this invocation",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=(
            "Write logs to this file instead of the default or"
            " SOMAFM_TUI_LOG_FILE"
        ),
    )
    parser.add_argument(
        "--player",
        dest="preferred_player",
        default=None,
        help="Media player executable to launch (falls back to mpv, vlc, ffplay)",
    )
    theme_names = ", ".join(_sorted_theme_names())
    parser.add_argument(
        "--theme",
        default=None,
        help=(
            "Select the application theme. Available options: "
            f"{theme_names}."
        ),
    )
    parser.add_argument(
        "--list-themes",
        action="store_true",
        help="List available themes and exit.",
    )
    parser.add_argument(
        "--probe-player",
        action="store_true",
        help="Check that the media player can be executed and exit.",
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Write the effective configuration (including --player and --theme) to --config and exit.",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    if args.list_themes:
        for theme_name in _sorted_theme_names():
            print(theme_name)
        return
    configure_logging(
        level=args.log_level,
        log_file=str(args.log_file) if args.log_file is not None else None,
    )
    log.info("CLI invoked with config=%s", args.config)
    config = load_config(args.config)
    if args.preferred_player:
        config.player = args.preferred_player
    if args.theme:
        config.theme = args.theme
    if args.save_config:
        save_config(config, args.config)
        print(f"Configuration written to {args.config}")
        return
    if args.probe_player:
        try:
            print(probe_player(config.player))
        except PlaybackError as exc:
            print(f"Error: {exc}")
            raise SystemExit(1) from None
        return
    app = SomaFMApp(config, theme=config.theme)
    log.info("Launching Textual application")
    try:
        app.run()
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received; exiting application")
        if app.is_running:
            app.exit()
        raise SystemExit(130) from None
    except Exception as exc:
        log.exception("Terminal interface failed")
        print(f"Error: {exc}")
        raise SystemExit(1) from None
    if app.return_code:
        raise SystemExit(app.return_code)


if __name__ == "__main__":  # pragma: no cover
    main()
