"""Style resolution: themes mapping blocks to styled paragraphs."""

from .themes import (
    DEFAULT_THEME,
    BannerTheme,
    ColorfulTheme,
    HeadingTheme,
    Theme,
    UnderlineTheme,
    available_themes,
    get_theme,
    register_theme,
    resolve_paragraph,
    resolve_title,
)

__all__ = [
    "DEFAULT_THEME",
    "BannerTheme",
    "ColorfulTheme",
    "HeadingTheme",
    "Theme",
    "UnderlineTheme",
    "available_themes",
    "get_theme",
    "register_theme",
    "resolve_paragraph",
    "resolve_title",
]
