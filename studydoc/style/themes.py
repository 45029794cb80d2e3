"""Presentation themes: map classified blocks to styled paragraphs.

A theme is a mutually exclusive presentation policy over the same Block
stream. `Theme` implements the plain formal look; the other themes override
only the attributes or hooks that differ. New themes are added by
subclassing `Theme` and calling `register_theme`.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Union

from studydoc.content import Block
from studydoc.docs.model import Alignment, Border, Paragraph, StyledRun
from studydoc.errors import ValidationError


class Theme:
    name = "formal"
    font_family: Optional[str] = "Times New Roman"
    base_size = 20
    title_size = 24
    header_color = "000000"
    body_color = "000000"
    title_color = "000000"
    # Header colors rotated by block index; empty means header_color for every block.
    palette: Tuple[str, ...] = ()
    header_spacing = (240, 120)
    body_spacing = (0, 120)
    title_spacing_after = 360
    alignment = Alignment.JUSTIFY
    title_alignment = Alignment.CENTER
    bullet: Optional[str] = None

    def color_for(self, block_index: int) -> str:
        if self.palette:
            return self.palette[block_index % len(self.palette)]
        return self.header_color

    def run(self, text: str, bold: bool = False, color: Optional[str] = None, size: Optional[int] = None) -> StyledRun:
        return StyledRun(
            text=text,
            bold=bold,
            size_half_points=size or self.base_size,
            color_hex=color or self.body_color,
            font_family=self.font_family,
        )

    def header_runs(self, block: Block, block_index: int, color: Optional[str] = None) -> List[StyledRun]:
        """Emphasized label run, plus a body-weight run for the remainder if any."""
        color = color or self.color_for(block_index)
        label = block.label if block.label is not None else block.text
        if block.remainder:
            return [
                self.run(label + " ", bold=True, color=color),
                self.run(block.remainder, bold=False, color=color),
            ]
        return [self.run(label, bold=True, color=color)]

    def header_paragraph(self, block: Block, block_index: int) -> Paragraph:
        before, after = self.header_spacing
        return Paragraph(
            runs=self.header_runs(block, block_index),
            spacing_before=before,
            spacing_after=after,
            alignment=self.alignment,
        )

    def body_paragraph(self, block: Block, block_index: int) -> Paragraph:
        before, after = self.body_spacing
        text = f"{self.bullet} {block.text}" if self.bullet else block.text
        return Paragraph(
            runs=[self.run(text)],
            spacing_before=before,
            spacing_after=after,
            alignment=self.alignment,
        )

    def title_paragraph(self, title: str) -> Paragraph:
        return Paragraph(
            runs=[self.run(title, bold=True, color=self.title_color, size=self.title_size)],
            spacing_after=self.title_spacing_after,
            alignment=self.title_alignment,
        )

    def paragraph_for(self, block: Block, block_index: int) -> Paragraph:
        if block.is_header:
            return self.header_paragraph(block, block_index)
        return self.body_paragraph(block, block_index)


class ColorfulTheme(Theme):
    name = "colorful"
    font_family = "Calibri"
    base_size = 21
    title_size = 32
    title_color = "2E86AB"
    body_color = "333333"
    palette = ("2E86AB", "A23B72", "F18F01", "C73E1D", "3B8B5A")
    # Light tint behind each header, same order as the palette.
    fills = ("E3F2FA", "F7E4EF", "FEF0DC", "F9E1DD", "E2F1E8")
    alignment = Alignment.LEFT
    bullet = "•"

    def header_paragraph(self, block: Block, block_index: int) -> Paragraph:
        para = super().header_paragraph(block, block_index)
        accent = self.color_for(block_index)
        para.borders = (Border(side="left", size_eighths=24, color_hex=accent, space=8),)
        para.shading = self.fills[block_index % len(self.fills)]
        para.indent = 144
        return para

    def title_paragraph(self, title: str) -> Paragraph:
        para = super().title_paragraph(title)
        para.runs = [self.run(f"✦ {title} ✦", bold=True, color=self.title_color, size=self.title_size)]
        return para


class UnderlineTheme(Theme):
    name = "underline"
    font_family = "Georgia"
    title_size = 28
    header_color = "1F1F1F"
    rule_color = "444444"
    alignment = Alignment.LEFT

    def header_paragraph(self, block: Block, block_index: int) -> Paragraph:
        para = super().header_paragraph(block, block_index)
        para.borders = (Border(side="bottom", size_eighths=6, color_hex=self.rule_color, space=1),)
        return para

    def title_paragraph(self, title: str) -> Paragraph:
        para = super().title_paragraph(title)
        para.borders = (
            Border(side="top", size_eighths=12, color_hex=self.rule_color, space=4),
            Border(side="bottom", size_eighths=12, color_hex=self.rule_color, space=4),
        )
        return para


class BannerTheme(Theme):
    name = "banner"
    font_family = "Arial"
    title_size = 32
    header_color = "FFFFFF"
    banner_fill = "1F3A5F"
    title_color = "1F3A5F"
    header_spacing = (240, 160)
    alignment = Alignment.LEFT

    def header_paragraph(self, block: Block, block_index: int) -> Paragraph:
        para = super().header_paragraph(block, block_index)
        para.shading = self.banner_fill
        para.indent = 72
        return para

    def title_paragraph(self, title: str) -> Paragraph:
        para = super().title_paragraph(title)
        para.borders = tuple(
            Border(side=side, style="double", size_eighths=18, color_hex=self.title_color, space=6)
            for side in ("top", "left", "bottom", "right")
        )
        return para


class HeadingTheme(Theme):
    name = "heading"
    font_family = "Calibri"
    base_size = 22
    title_size = 32
    header_color = "17365D"
    title_color = "17365D"
    header_level = 2
    alignment = Alignment.LEFT
    title_alignment = Alignment.LEFT

    def header_paragraph(self, block: Block, block_index: int) -> Paragraph:
        para = super().header_paragraph(block, block_index)
        para.heading_level = self.header_level
        return para

    def title_paragraph(self, title: str) -> Paragraph:
        para = super().title_paragraph(title)
        para.heading_level = 0
        return para


_THEMES: Dict[str, Theme] = {}


def register_theme(theme: Theme) -> Theme:
    _THEMES[theme.name] = theme
    return theme


for _theme_cls in (Theme, ColorfulTheme, UnderlineTheme, BannerTheme, HeadingTheme):
    register_theme(_theme_cls())

DEFAULT_THEME = "formal"

ThemeRef = Union[str, Theme]


def available_themes() -> List[str]:
    return sorted(_THEMES)


def get_theme(theme: ThemeRef) -> Theme:
    """Return a registered theme by id (instances pass through unchanged)."""
    if isinstance(theme, Theme):
        return theme
    key = (theme or "").strip().lower()
    try:
        return _THEMES[key]
    except KeyError:
        raise ValidationError(
            f"Unknown theme '{theme}'. Available: {', '.join(available_themes())}"
        ) from None


def resolve_paragraph(block: Block, theme: ThemeRef, block_index: int) -> Paragraph:
    """Style one block; `block_index` drives palette rotation."""
    return get_theme(theme).paragraph_for(block, block_index)


def resolve_title(title: str, theme: ThemeRef) -> Paragraph:
    return get_theme(theme).title_paragraph(title)
