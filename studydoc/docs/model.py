from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

# Word measures: 1 inch = 1440 twips, font sizes in half-points, borders in eighths of a point.
TWIPS_PER_INCH = 1440
DEFAULT_MARGIN_TWIPS = TWIPS_PER_INCH
DEFAULT_COLUMN_GAP_TWIPS = 708


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "both"


class ColumnStrategy(str, Enum):
    NATIVE = "native"
    TABLE = "table"


@dataclass(frozen=True)
class StyledRun:
    text: str
    bold: bool = False
    size_half_points: int = 20
    color_hex: str = "000000"
    font_family: Optional[str] = None


@dataclass(frozen=True)
class Border:
    side: str  # top | bottom | left | right
    style: str = "single"  # single | double
    size_eighths: int = 12
    color_hex: str = "000000"
    space: int = 4


@dataclass
class Paragraph:
    runs: List[StyledRun] = field(default_factory=list)
    spacing_before: int = 0
    spacing_after: int = 0
    alignment: Alignment = Alignment.LEFT
    borders: Tuple[Border, ...] = ()
    shading: Optional[str] = None
    indent: Optional[int] = None
    # 0 = document title, 1..9 = heading rank; None = plain body paragraph
    heading_level: Optional[int] = None

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)


@dataclass
class RowPair:
    left: Paragraph
    right: Optional[Paragraph] = None


@dataclass(frozen=True)
class Margins:
    top: int = DEFAULT_MARGIN_TWIPS
    right: int = DEFAULT_MARGIN_TWIPS
    bottom: int = DEFAULT_MARGIN_TWIPS
    left: int = DEFAULT_MARGIN_TWIPS

    @classmethod
    def uniform(cls, twips: int) -> "Margins":
        return cls(top=twips, right=twips, bottom=twips, left=twips)


@dataclass(frozen=True)
class ColumnSpec:
    count: int = 2
    gap_twips: int = DEFAULT_COLUMN_GAP_TWIPS
    separator_line: bool = True


@dataclass(frozen=True)
class TableEmulation:
    columns: int = 2


ColumnLayout = Union[ColumnSpec, TableEmulation]
SectionItem = Union[Paragraph, RowPair]


@dataclass
class Section:
    columns: ColumnLayout
    blocks: List[SectionItem] = field(default_factory=list)
    margins: Margins = field(default_factory=Margins)

    @property
    def is_native_flow(self) -> bool:
        return isinstance(self.columns, ColumnSpec)

    def iter_paragraphs(self) -> List[Paragraph]:
        """Paragraphs in reading order; row pairs contribute left then right."""
        out: List[Paragraph] = []
        for item in self.blocks:
            if isinstance(item, RowPair):
                out.append(item.left)
                if item.right is not None:
                    out.append(item.right)
            else:
                out.append(item)
        return out


@dataclass
class Document:
    title: str
    sections: List[Section] = field(default_factory=list)

    def iter_paragraphs(self) -> List[Paragraph]:
        out: List[Paragraph] = []
        for s in self.sections:
            out.extend(s.iter_paragraphs())
        return out
