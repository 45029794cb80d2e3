"""Content classification: raw text to ordered header/body blocks."""

from .classifier import (
    Block,
    BlockKind,
    DEFAULT_HEADER_PREFIXES,
    classify_content,
    classify_segment,
    split_segments,
    strip_markdown,
)

__all__ = [
    "Block",
    "BlockKind",
    "DEFAULT_HEADER_PREFIXES",
    "classify_content",
    "classify_segment",
    "split_segments",
    "strip_markdown",
]
