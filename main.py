"""
Entry point and facade for the study-guide document pipeline.

Packages:
- studydoc.content: raw text → classified header/body blocks
- studydoc.style: themes mapping blocks to styled paragraphs
- studydoc.docs: document model, assembler, DOCX encoder, PDF conversion, pipeline
- studydoc.service: request handlers (validation, error mapping, filenames)
"""

from __future__ import annotations

import asyncio
import os
from typing import Optional

from studydoc.config import load_settings
from studydoc.content import classify_content
from studydoc.docs.assembler import assemble_document
from studydoc.docs.docx_io import DocxEncoder, read_docx
from studydoc.docs.model import ColumnStrategy
from studydoc.docs.pipeline import StudyGuidePipeline
from studydoc.errors import StudyDocError, ValidationError
from studydoc.log import setup_logging
from studydoc.service import DEFAULT_TITLE, GuideService, sanitize_filename
from studydoc.style import available_themes

__all__ = [
    "classify_content",
    "assemble_document",
    "DocxEncoder",
    "read_docx",
    "StudyGuidePipeline",
    "GuideService",
    "sanitize_filename",
    "generate_pdf",
    "generate_docx",
    "convert_docx",
]


def _pipeline(config: Optional[str] = None) -> StudyGuidePipeline:
    return StudyGuidePipeline.from_settings(load_settings(config))


def generate_pdf(title: str, content: str, theme: Optional[str] = None, columns: Optional[str] = None,
                 config: Optional[str] = None) -> bytes:
    """Synchronous wrapper: content text → PDF bytes."""
    strategy = ColumnStrategy(columns) if columns else None
    return asyncio.run(_pipeline(config).render_pdf(title, content, theme, strategy))


def generate_docx(title: str, content: str, theme: Optional[str] = None, columns: Optional[str] = None,
                  config: Optional[str] = None) -> bytes:
    """Synchronous wrapper: content text → DOCX bytes."""
    strategy = ColumnStrategy(columns) if columns else None
    return _pipeline(config).render_docx(title, content, theme, strategy)


def convert_docx(data: bytes, config: Optional[str] = None) -> bytes:
    """Synchronous wrapper: DOCX bytes → PDF bytes through the renderer chain."""
    return asyncio.run(_pipeline(config).convert_docx(data))


def _read_file(path: str, mode: str = "r"):
    if not os.path.exists(path):
        raise ValidationError(f"File not found: {path}")
    if "b" in mode:
        with open(path, mode) as f:
            return f.read()
    with open(path, mode, encoding="utf-8") as f:
        return f.read()


def _cli() -> None:
    """CLI for study-guide generation and DOCX conversion.

    pdf / docx:
    --file / -f: Path to the content text file (markdown-ish)
    --title / -t: Document title (default: Study Guide)
    --theme: Presentation theme (default from settings)
    --columns: native | table (default from settings)
    --out / -o: Output path (default: <sanitized title>.pdf|.docx)

    convert:
    --file / -f: Path to a .docx file
    --out / -o: Output PDF path (default: converted.pdf)

    Common:
    --config: Settings JSON path (default: config/settings.json or $STUDYDOC_CONFIG)
    --log-level: Override the configured log level
    """
    import argparse

    parser = argparse.ArgumentParser(description="Generate styled two-column study guides (DOCX/PDF).")
    parser.add_argument("--config", type=str, default=None, help="Path to settings JSON")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, fmt in (("pdf", "PDF"), ("docx", "Word document")):
        p = sub.add_parser(name, help=f"Generate a {fmt} from a content file")
        p.add_argument("--file", "-f", type=str, required=True, help="Path to content text file")
        p.add_argument("--title", "-t", type=str, default=DEFAULT_TITLE, help=f"Document title (default: {DEFAULT_TITLE})")
        p.add_argument("--theme", type=str, choices=available_themes(), default=None, help="Presentation theme")
        p.add_argument("--columns", type=str, choices=[s.value for s in ColumnStrategy], default=None,
                       help="Column strategy: native section columns or table emulation")
        p.add_argument("--out", "-o", type=str, default=None, help="Output path")

    p = sub.add_parser("convert", help="Convert a DOCX file to PDF")
    p.add_argument("--file", "-f", type=str, required=True, help="Path to .docx file")
    p.add_argument("--out", "-o", type=str, default="converted.pdf", help="Output PDF path (default: converted.pdf)")

    args = parser.parse_args()

    try:
        settings = load_settings(args.config)
    except ValueError as e:
        print(f"Invalid settings: {e}")
        raise SystemExit(2)
    setup_logging(args.log_level or settings.log_level)
    pipeline = StudyGuidePipeline.from_settings(settings)
    strategy = ColumnStrategy(args.columns) if getattr(args, "columns", None) else None

    try:
        if args.command == "convert":
            data = asyncio.run(pipeline.convert_docx(_read_file(args.file, "rb")))
            out = args.out
        elif args.command == "docx":
            data = pipeline.render_docx(args.title, _read_file(args.file), args.theme, strategy)
            out = args.out or f"{sanitize_filename(args.title)}.docx"
        else:
            data = asyncio.run(pipeline.render_pdf(args.title, _read_file(args.file), args.theme, strategy))
            out = args.out or f"{sanitize_filename(args.title)}.pdf"
    except ValidationError as e:
        print(str(e))
        raise SystemExit(2)
    except StudyDocError as e:
        print(f"Error: {e}")
        raise SystemExit(1)

    with open(out, "wb") as f:
        f.write(data)
    print(f"Saved {args.command} output to: {out}")


if __name__ == "__main__":
    _cli()
