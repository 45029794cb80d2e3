"""Build the Document model from classified blocks and a theme.

Two column strategies are supported:
- native flow: one section declaring two columns, paragraphs flow in reading
  order and the renderer balances them;
- table emulation: consecutive blocks are paired into fixed two-cell rows,
  giving deterministic left/right placement for encoders without native
  multi-column sections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from studydoc.content import Block
from studydoc.style.themes import ThemeRef, get_theme

from .model import (
    DEFAULT_COLUMN_GAP_TWIPS,
    ColumnSpec,
    ColumnStrategy,
    Document,
    Margins,
    Paragraph,
    RowPair,
    Section,
    SectionItem,
    TableEmulation,
)


@dataclass(frozen=True)
class LayoutOptions:
    margins: Margins = field(default_factory=Margins)
    column_gap_twips: int = DEFAULT_COLUMN_GAP_TWIPS
    column_separator: bool = True


def pair_paragraphs(paragraphs: Sequence[Paragraph]) -> List[RowPair]:
    """Pair paragraphs as (2i, 2i+1); an odd trailing paragraph gets an empty right cell."""
    rows: List[RowPair] = []
    for i in range(0, len(paragraphs), 2):
        right = paragraphs[i + 1] if i + 1 < len(paragraphs) else None
        rows.append(RowPair(left=paragraphs[i], right=right))
    return rows


def assemble_document(
    title: str,
    blocks: Sequence[Block],
    theme: ThemeRef,
    strategy: ColumnStrategy = ColumnStrategy.NATIVE,
    layout: Optional[LayoutOptions] = None,
) -> Document:
    """Assemble a single-section Document: title paragraph then styled blocks.

    The title always stays a full-width paragraph ahead of the content, for
    both strategies.
    """
    layout = layout or LayoutOptions()
    resolved = get_theme(theme)
    strategy = ColumnStrategy(strategy)

    title_para = resolved.title_paragraph(title)
    styled = [resolved.paragraph_for(block, idx) for idx, block in enumerate(blocks)]

    items: List[SectionItem] = [title_para]
    if strategy is ColumnStrategy.NATIVE:
        columns = ColumnSpec(
            count=2,
            gap_twips=layout.column_gap_twips,
            separator_line=layout.column_separator,
        )
        items.extend(styled)
    else:
        columns = TableEmulation()
        items.extend(pair_paragraphs(styled))

    section = Section(columns=columns, blocks=items, margins=layout.margins)
    return Document(title=title, sections=[section])
