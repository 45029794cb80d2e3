"""Document layer: model, assembly, DOCX encoding and PDF conversion.

Exposes:
- Data model: Document, Section, Paragraph, StyledRun, RowPair, ...
- Buffer manager: BufferManager (per-job temporary paths)
- Assembler, encoder, conversion orchestrator and pipeline live in
  submodules (assembler, docx_io, convert, pipeline)
"""

from .model import (
    Alignment,
    Border,
    ColumnSpec,
    ColumnStrategy,
    Document,
    Margins,
    Paragraph,
    RowPair,
    Section,
    StyledRun,
    TableEmulation,
)
from .buffer import BufferManager

__all__ = [
    "Alignment",
    "Border",
    "ColumnSpec",
    "ColumnStrategy",
    "Document",
    "Margins",
    "Paragraph",
    "RowPair",
    "Section",
    "StyledRun",
    "TableEmulation",
    "BufferManager",
]
