"""Theme definitions for SomaFM TUI."""
from __future__ import annotations

from typing import Mapping

from textual.theme import Theme

from .view import ViewStyle

__all__ = [
    "CUSTOM_THEMES",
    "DEFAULT_THEME_NAME",
    "STYLE_THEMES",
    "style_for_theme",
]

_SOMAFM_CORAL = "#FF6B6B"
_SOMAFM_TEAL = "#4ECDC4"
_SOMAFM_RED = "#FF0000"

# Solarized palette reference values.
_SOLARIZED_BASE03 = "#002b36"
_SOLARIZED_BASE02 = "#073642"
_SOLARIZED_BASE01 = "#586e75"
_SOLARIZED_BASE00 = "#657b83"
_SOLARIZED_BASE1 = "#93a1a1"
_SOLARIZED_BASE2 = "#eee8d5"
_SOLARIZED_BASE3 = "#fdf6e3"
_SOLARIZED_YELLOW = "#b58900"
_SOLARIZED_ORANGE = "#cb4b16"
_SOLARIZED_RED = "#dc322f"
_SOLARIZED_MAGENTA = "#d33682"
_SOLARIZED_VIOLET = "#6c71c4"
_SOLARIZED_BLUE = "#268bd2"
_SOLARIZED_CYAN = "#2aa198"
_SOLARIZED_GREEN = "#859900"

_SOMAFM = Theme(
    "somafm",
    primary=_SOMAFM_CORAL,
    secondary=_SOMAFM_TEAL,
    error=_SOMAFM_RED,
    dark=True,
)

_SOLARIZED_DARK = Theme(
    "solarized-dark",
    primary=_SOLARIZED_BLUE,
    secondary=_SOLARIZED_CYAN,
    warning=_SOLARIZED_YELLOW,
    error=_SOLARIZED_RED,
    success=_SOLARIZED_GREEN,
    accent=_SOLARIZED_MAGENTA,
    foreground=_SOLARIZED_BASE1,
    background=_SOLARIZED_BASE03,
    surface=_SOLARIZED_BASE02,
    panel=_SOLARIZED_BASE02,
    boost=_SOLARIZED_BASE2,
    dark=True,
)

_SOLARIZED_LIGHT = Theme(
    "solarized-light",
    primary=_SOLARIZED_BLUE,
    secondary=_SOLARIZED_VIOLET,
    warning=_SOLARIZED_YELLOW,
    error=_SOLARIZED_RED,
    success=_SOLARIZED_GREEN,
    accent=_SOLARIZED_ORANGE,
    foreground=_SOLARIZED_BASE00,
    background=_SOLARIZED_BASE3,
    surface=_SOLARIZED_BASE2,
    panel=_SOLARIZED_BASE2,
    boost=_SOLARIZED_BASE01,
    dark=False,
)

CUSTOM_THEMES: Mapping[str, Theme] = {
    _SOMAFM.name: _SOMAFM,
    _SOLARIZED_DARK.name: _SOLARIZED_DARK,
    _SOLARIZED_LIGHT.name: _SOLARIZED_LIGHT,
}
"""Textual themes bundled with the application keyed by their names."""

STYLE_THEMES: Mapping[str, ViewStyle] = {
    _SOMAFM.name: ViewStyle(),
    _SOLARIZED_DARK.name: ViewStyle(
        title=f"bold {_SOLARIZED_ORANGE}",
        selected=_SOLARIZED_CYAN,
        error=f"bold {_SOLARIZED_RED}",
        footer=_SOLARIZED_BASE01,
    ),
    _SOLARIZED_LIGHT.name: ViewStyle(
        title=f"bold {_SOLARIZED_ORANGE}",
        selected=_SOLARIZED_BLUE,
        error=f"bold {_SOLARIZED_RED}",
        footer=_SOLARIZED_BASE1,
    ),
}
"""Frame styles matching each entry of :data:`CUSTOM_THEMES`."""

DEFAULT_THEME_NAME = _SOMAFM.name
"""Default theme to apply when none is specified explicitly."""


def style_for_theme(name: str) -> ViewStyle:
    """Return the frame style for *name*, falling back to the default."""

    return STYLE_THEMES.get(name, STYLE_THEMES[DEFAULT_THEME_NAME])
