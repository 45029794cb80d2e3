from __future__ import annotations

import io
import re
import zipfile
from datetime import datetime
from typing import Iterable, List, Optional, Union

from docx import Document as DocxDocument
from docx.enum.section import WD_SECTION
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor, Twips
from docx.table import Table as DocxTable
from docx.text.paragraph import Paragraph as DocxParagraph

from studydoc.errors import EncodingError

from .model import (
    Alignment,
    Border,
    ColumnSpec,
    Document,
    Paragraph,
    RowPair,
    Section,
    StyledRun,
    TableEmulation,
)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_ALIGN = {
    Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
    Alignment.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
    Alignment.JUSTIFY: WD_ALIGN_PARAGRAPH.JUSTIFY,
}
_ALIGN_BACK = {v: k for k, v in _ALIGN.items()}

# Schema order of w:pPr children that may follow w:pBdr / w:shd.
_SHD_SUCCESSORS = (
    "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap", "w:overflowPunct",
    "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN", "w:bidi", "w:adjustRightInd",
    "w:snapToGrid", "w:spacing", "w:ind", "w:contextualSpacing", "w:mirrorIndents",
    "w:suppressOverlap", "w:jc", "w:textDirection", "w:textAlignment",
    "w:textboxTightWrap", "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr",
    "w:sectPr", "w:pPrChange",
)
_PBDR_SUCCESSORS = ("w:shd",) + _SHD_SUCCESSORS
_COLS_SUCCESSORS = (
    "w:formProt", "w:vAlign", "w:noEndnote", "w:titlePg", "w:textDirection",
    "w:bidi", "w:rtlGutter", "w:docGrid", "w:printerSettings", "w:sectPrChange",
)
# Order of border sides inside w:pBdr.
_BORDER_SIDES = ("top", "left", "bottom", "right")
_BORDER_STYLES = ("single", "double")

_HEX_COLOR = re.compile(r"^[0-9A-Fa-f]{6}$")
_PINNED_TIMESTAMP = datetime(2000, 1, 1)
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def _check_color(value: str, what: str) -> str:
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise EncodingError(f"Invalid {what} color '{value}': expected 6 hex digits")
    return value.upper()


def _style_name(level: Optional[int]) -> Optional[str]:
    if level is None:
        return None
    if not isinstance(level, int) or not 0 <= level <= 9:
        raise EncodingError(f"Unsupported heading level: {level!r}")
    return "Title" if level == 0 else f"Heading {level}"


def _level_from_style(name: Optional[str]) -> Optional[int]:
    if name == "Title":
        return 0
    if name and name.startswith("Heading "):
        try:
            return int(name.split(" ", 1)[1])
        except ValueError:
            return None
    return None


def _normalize_package(blob: bytes) -> bytes:
    """Rewrite the zip container with fixed entry timestamps so output is reproducible."""
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(blob)) as src, zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as dst:
        for info in src.infolist():
            fixed = zipfile.ZipInfo(info.filename, date_time=_ZIP_EPOCH)
            fixed.compress_type = zipfile.ZIP_DEFLATED
            fixed.external_attr = info.external_attr
            dst.writestr(fixed, src.read(info.filename))
    return out.getvalue()


class DocxEncoder:
    """Serialize a Document model into a DOCX package with python-docx."""

    supports_native_columns = True
    media_type = DOCX_MIME

    def encode(self, doc: Document) -> bytes:
        if not doc.sections:
            raise EncodingError("Document has no sections")
        try:
            d = DocxDocument()
            self._set_properties(d, doc.title)
            for idx, section in enumerate(doc.sections):
                docx_section = d.sections[0] if idx == 0 else d.add_section(WD_SECTION.NEW_PAGE)
                self._write_section(d, docx_section, section)
            buf = io.BytesIO()
            d.save(buf)
        except EncodingError:
            raise
        except (KeyError, ValueError, TypeError) as e:
            raise EncodingError(f"Failed to encode document: {e}") from e
        return _normalize_package(buf.getvalue())

    def _set_properties(self, d, title: str) -> None:
        props = d.core_properties
        props.title = title or ""
        props.author = "studydoc"
        props.last_modified_by = "studydoc"
        props.revision = 1
        props.created = _PINNED_TIMESTAMP
        props.modified = _PINNED_TIMESTAMP

    def _write_section(self, d, docx_section, section: Section) -> None:
        m = section.margins
        docx_section.top_margin = Twips(m.top)
        docx_section.right_margin = Twips(m.right)
        docx_section.bottom_margin = Twips(m.bottom)
        docx_section.left_margin = Twips(m.left)

        if isinstance(section.columns, ColumnSpec):
            self._set_columns(docx_section, section.columns)
            for item in section.blocks:
                if isinstance(item, RowPair):
                    raise EncodingError("Row pairs cannot be placed in a native multi-column section")
                self._fill_paragraph(d.add_paragraph(), item)
        elif isinstance(section.columns, TableEmulation):
            if section.columns.columns != 2:
                raise EncodingError(f"Table emulation supports 2 columns, got {section.columns.columns}")
            # Available width = page width - (left+right) margins
            avail_width = docx_section.page_width - docx_section.left_margin - docx_section.right_margin
            table = None
            for item in section.blocks:
                if isinstance(item, RowPair):
                    if table is None:
                        table = self._new_table(d, avail_width)
                    self._add_row(table, item, avail_width)
                else:
                    table = None
                    self._fill_paragraph(d.add_paragraph(), item)
        else:
            raise EncodingError(f"Unknown column layout: {section.columns!r}")

    def _set_columns(self, docx_section, spec: ColumnSpec) -> None:
        if spec.count < 1:
            raise EncodingError(f"Column count must be positive, got {spec.count}")
        sectPr = docx_section._sectPr
        cols = sectPr.find(qn("w:cols"))
        if cols is None:
            cols = OxmlElement("w:cols")
            sectPr.insert_element_before(cols, *_COLS_SUCCESSORS)
        cols.set(qn("w:num"), str(spec.count))
        cols.set(qn("w:space"), str(spec.gap_twips))
        cols.set(qn("w:sep"), "1" if spec.separator_line else "0")

    def _new_table(self, d, avail_width) -> DocxTable:
        table = d.add_table(rows=0, cols=2)
        table.style = "Table Grid"
        table.autofit = False
        for column in table.columns:
            column.width = int(avail_width / 2)
        return table

    def _add_row(self, table: DocxTable, pair: RowPair, avail_width) -> None:
        row = table.add_row()
        for cell, para in zip(row.cells, (pair.left, pair.right)):
            cell.width = int(avail_width / 2)
            if para is not None:
                self._fill_paragraph(cell.paragraphs[0], para)

    def _fill_paragraph(self, p: DocxParagraph, para: Paragraph) -> None:
        style = _style_name(para.heading_level)
        if style:
            p.style = style
        for run in para.runs:
            self._add_run(p, run)

        pf = p.paragraph_format
        if para.spacing_before:
            pf.space_before = Twips(para.spacing_before)
        if para.spacing_after:
            pf.space_after = Twips(para.spacing_after)
        pf.alignment = _ALIGN[Alignment(para.alignment)]
        if para.indent:
            pf.left_indent = Twips(para.indent)
        if para.borders:
            self._apply_borders(p, para.borders)
        if para.shading:
            self._apply_shading(p, para.shading)

    def _add_run(self, p: DocxParagraph, run: StyledRun) -> None:
        r = p.add_run(run.text)
        r.bold = bool(run.bold)
        r.font.size = Pt(run.size_half_points / 2)
        r.font.color.rgb = RGBColor.from_string(_check_color(run.color_hex, "run"))
        if run.font_family:
            r.font.name = run.font_family

    def _apply_borders(self, p: DocxParagraph, borders: Iterable[Border]) -> None:
        borders = list(borders)
        for b in borders:
            if b.side not in _BORDER_SIDES:
                raise EncodingError(f"Unsupported border side '{b.side}'")
            if b.style not in _BORDER_STYLES:
                raise EncodingError(f"Unsupported border style '{b.style}'")
        pBdr = OxmlElement("w:pBdr")
        for side in _BORDER_SIDES:
            for b in borders:
                if b.side != side:
                    continue
                el = OxmlElement(f"w:{side}")
                el.set(qn("w:val"), b.style)
                el.set(qn("w:sz"), str(b.size_eighths))
                el.set(qn("w:space"), str(b.space))
                el.set(qn("w:color"), _check_color(b.color_hex, "border"))
                pBdr.append(el)
        p._p.get_or_add_pPr().insert_element_before(pBdr, *_PBDR_SUCCESSORS)

    def _apply_shading(self, p: DocxParagraph, fill: str) -> None:
        shd = OxmlElement("w:shd")
        shd.set(qn("w:val"), "clear")
        shd.set(qn("w:color"), "auto")
        shd.set(qn("w:fill"), _check_color(fill, "shading"))
        p._p.get_or_add_pPr().insert_element_before(shd, *_SHD_SUCCESSORS)


def _read_run(r) -> StyledRun:
    size = r.font.size
    rgb = r.font.color.rgb if r.font.color and r.font.color.type is not None else None
    return StyledRun(
        text=r.text,
        bold=bool(r.bold),
        size_half_points=int(round(size.pt * 2)) if size is not None else 20,
        color_hex=str(rgb) if rgb is not None else "000000",
        font_family=r.font.name,
    )


def _read_paragraph(p: DocxParagraph) -> Paragraph:
    pf = p.paragraph_format
    borders: List[Border] = []
    shading: Optional[str] = None
    pPr = p._p.pPr
    if pPr is not None:
        pBdr = pPr.find(qn("w:pBdr"))
        if pBdr is not None:
            for el in pBdr:
                borders.append(Border(
                    side=el.tag.rsplit("}", 1)[-1],
                    style=el.get(qn("w:val")),
                    size_eighths=int(el.get(qn("w:sz"), "0")),
                    color_hex=el.get(qn("w:color"), "000000"),
                    space=int(el.get(qn("w:space"), "0")),
                ))
        shd = pPr.find(qn("w:shd"))
        if shd is not None:
            shading = shd.get(qn("w:fill"))
    return Paragraph(
        runs=[_read_run(r) for r in p.runs],
        spacing_before=pf.space_before.twips if pf.space_before is not None else 0,
        spacing_after=pf.space_after.twips if pf.space_after is not None else 0,
        alignment=_ALIGN_BACK.get(pf.alignment, Alignment.LEFT),
        borders=tuple(borders),
        shading=shading,
        indent=pf.left_indent.twips if pf.left_indent is not None else None,
        heading_level=_level_from_style(p.style.name if p.style is not None else None),
    )


def read_docx(source: Union[bytes, str]) -> List[Paragraph]:
    """Decode a DOCX package (bytes or path) into model paragraphs in reading order.

    Table rows are flattened left cell then right cell; empty cells are skipped.
    """
    d = DocxDocument(io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source)
    out: List[Paragraph] = []
    for child in d.element.body.iterchildren():
        if child.tag == qn("w:p"):
            out.append(_read_paragraph(DocxParagraph(child, d)))
        elif child.tag == qn("w:tbl"):
            for row in DocxTable(child, d).rows:
                for cell in row.cells:
                    for p in cell.paragraphs:
                        if p.runs:
                            out.append(_read_paragraph(p))
    return out
