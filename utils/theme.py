"""Color palettes for terminal output."""

from dataclasses import dataclass
from typing import Dict


@dataclass
class ThemeColors:
    """Color palette for a terminal theme."""

    success: str
    warning: str
    error: str
    text_muted: str


DARK_THEME = ThemeColors(
    success="#10B981",
    warning="#F59E0B",
    error="#EF4444",
    text_muted="#484F58",
)

LIGHT_THEME = ThemeColors(
    success="#1A7F37",
    warning="#9A6700",
    error="#CF222E",
    text_muted="#8C959F",
)

THEMES: Dict[str, ThemeColors] = {
    "dark": DARK_THEME,
    "light": LIGHT_THEME,
}


class Theme:
    """Current theme holder."""

    _current_theme: str = "dark"

    @classmethod
    def get_colors(cls) -> ThemeColors:
        return THEMES[cls._current_theme]

    @classmethod
    def set_theme(cls, name: str) -> None:
        """Set the current theme.

        Args:
            name: Theme name ('dark' or 'light')

        Raises:
            ValueError: If theme name is invalid
        """
        if name not in THEMES:
            raise ValueError(f"Unknown theme: {name}. Available: {list(THEMES.keys())}")
        cls._current_theme = name
