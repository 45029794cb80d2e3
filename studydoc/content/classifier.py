"""Split markdown-ish study-guide text into ordered header/body blocks.

This module provides:
- Splitting raw text into blank-line-delimited segments.
- Stripping markdown noise (bold/italic/heading/strikethrough/code markers).
- Classifying segments as headers (markdown markers or a domain prefix
  allow-list) and splitting "Label: rest" headers at the first colon.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Pattern, Sequence


class BlockKind(str, Enum):
    HEADER = "header"
    BODY = "body"


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    raw_text: str
    text: str
    label: Optional[str] = None
    remainder: Optional[str] = None

    @property
    def is_header(self) -> bool:
        return self.kind is BlockKind.HEADER


# Section openers produced by the study-guide generator upstream.
DEFAULT_HEADER_PREFIXES: Sequence[str] = (
    r"Page \d+ Analysis:",
    r"Main Idea:",
    r"Expert Insight:",
    r"Detailed Walkthrough:",
    r"Potential Confusion:",
    r"Relevance:",
    r"Create and Refine",
    r"Influence Claude",
    r"Evaluate Model",
    r"Build, Update",
)

_HEADING_MARK = re.compile(r"^[ \t]*#+[ \t]*", re.MULTILINE)
_FENCE_LINE = re.compile(r"^[ \t]*```.*$\n?", re.MULTILINE)
_STRONG = re.compile(r"(\*\*\*|\*\*|__)(.+?)\1", re.DOTALL)
_EMPHASIS = re.compile(r"(?<![\w*])([*_])(?!\s)([^*_\n]+?)(?<!\s)\1(?![\w*])")
_STRIKE = re.compile(r"~~(.+?)~~", re.DOTALL)
_INLINE_CODE = re.compile(r"`([^`]*)`")
_LEFTOVER = re.compile(r"\*{2,}|~~|`")


def compile_header_pattern(prefixes: Iterable[str] = DEFAULT_HEADER_PREFIXES) -> Pattern[str]:
    """Build the anchored, case-insensitive allow-list regex from prefix patterns."""
    return re.compile(r"^(?:" + "|".join(prefixes) + r")", re.IGNORECASE)


_DEFAULT_HEADER_PATTERN = compile_header_pattern()


def split_segments(text: str) -> List[str]:
    """Split text on blank lines (empty or whitespace-only) into trimmed segments.

    Empty segments are discarded; order is preserved.
    """
    parts: List[str] = []
    buf: List[str] = []
    for line in (text or "").splitlines():
        if line.strip() == "":
            if buf:
                parts.append("\n".join(buf).strip())
                buf = []
        else:
            buf.append(line)
    if buf:
        parts.append("\n".join(buf).strip())
    return [p for p in parts if p]


def strip_markdown(segment: str) -> str:
    """Remove markdown noise while keeping the visible text."""
    out = _FENCE_LINE.sub("", segment)
    out = _HEADING_MARK.sub("", out)
    out = _STRONG.sub(r"\2", out)
    out = _STRIKE.sub(r"\1", out)
    out = _INLINE_CODE.sub(r"\1", out)
    out = _EMPHASIS.sub(r"\2", out)
    out = _LEFTOVER.sub("", out)
    return out.strip()


def _split_label(text: str) -> tuple[str, Optional[str]]:
    idx = text.find(":")
    if idx < 0:
        return text, None
    remainder = text[idx + 1:].strip()
    if not remainder:
        return text, None
    return text[: idx + 1], remainder


def classify_segment(segment: str, header_pattern: Pattern[str] = _DEFAULT_HEADER_PATTERN) -> Block:
    """Classify one trimmed segment into a Block."""
    cleaned = strip_markdown(segment)
    is_header = (
        segment.lstrip().startswith("#")
        or "**" in segment
        or bool(header_pattern.match(cleaned))
    )
    if not is_header:
        return Block(kind=BlockKind.BODY, raw_text=segment, text=cleaned)

    label, remainder = _split_label(cleaned)
    return Block(kind=BlockKind.HEADER, raw_text=segment, text=cleaned, label=label, remainder=remainder)


def classify_content(
    text: str,
    header_prefixes: Optional[Iterable[str]] = None,
) -> List[Block]:
    """Turn raw study-guide text into an ordered list of classified blocks.

    Args:
        text: Raw markdown-ish content.
        header_prefixes: Optional replacement for the domain prefix allow-list
            (regex fragments, anchored at segment start, case-insensitive).

    Returns:
        One Block per non-empty blank-line-delimited segment, in input order.
        A segment made only of markdown markers yields a block with empty text.
    """
    pattern = _DEFAULT_HEADER_PATTERN if header_prefixes is None else compile_header_pattern(header_prefixes)
    return [classify_segment(seg, pattern) for seg in split_segments(text)]
