from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from studydoc.config import Settings, build_renderers
from studydoc.content import classify_content
from studydoc.log import get_logger
from studydoc.style import DEFAULT_THEME
from studydoc.style.themes import ThemeRef, get_theme

from .assembler import LayoutOptions, assemble_document
from .buffer import BufferManager
from .convert import ConversionOrchestrator
from .docx_io import DocxEncoder
from .model import ColumnStrategy, Document, Margins

logger = get_logger(__name__)


class StudyGuidePipeline:
    """Text → blocks → styled Document → DOCX bytes → (optional) PDF bytes.

    Theme, column strategy, encoder and renderer chain are injected so one
    pipeline object serves every visual variant.
    """

    def __init__(
        self,
        theme: ThemeRef = DEFAULT_THEME,
        strategy: ColumnStrategy = ColumnStrategy.NATIVE,
        layout: Optional[LayoutOptions] = None,
        encoder: Optional[DocxEncoder] = None,
        orchestrator: Optional[ConversionOrchestrator] = None,
        header_prefixes: Optional[Iterable[str]] = None,
    ) -> None:
        self.theme = get_theme(theme)
        self.strategy = ColumnStrategy(strategy)
        self.layout = layout or LayoutOptions()
        self.encoder = encoder or DocxEncoder()
        self.orchestrator = orchestrator
        self.header_prefixes = list(header_prefixes) if header_prefixes is not None else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "StudyGuidePipeline":
        orchestrator = ConversionOrchestrator(
            build_renderers(settings),
            buffer=BufferManager(settings.temp_dir),
            timeout=settings.renderer_timeout,
            max_concurrent=settings.max_concurrent_renders,
        )
        layout = LayoutOptions(
            margins=Margins.uniform(settings.margin_twips),
            column_gap_twips=settings.column_gap_twips,
            column_separator=settings.column_separator,
        )
        return cls(theme=settings.theme, strategy=settings.columns, layout=layout, orchestrator=orchestrator)

    def effective_strategy(self, requested: Optional[ColumnStrategy] = None) -> ColumnStrategy:
        strategy = ColumnStrategy(requested or self.strategy)
        if strategy is ColumnStrategy.NATIVE and not getattr(self.encoder, "supports_native_columns", True):
            logger.warning("Encoder %s has no native columns, using table emulation", type(self.encoder).__name__)
            return ColumnStrategy.TABLE
        return strategy

    def build_document(
        self,
        title: str,
        content: str,
        theme: Optional[ThemeRef] = None,
        strategy: Optional[ColumnStrategy] = None,
    ) -> Document:
        blocks = classify_content(content, self.header_prefixes)
        logger.debug("Classified %d blocks (%d headers)", len(blocks), sum(b.is_header for b in blocks))
        return assemble_document(
            title,
            blocks,
            theme if theme is not None else self.theme,
            self.effective_strategy(strategy),
            self.layout,
        )

    def render_docx(
        self,
        title: str,
        content: str,
        theme: Optional[ThemeRef] = None,
        strategy: Optional[ColumnStrategy] = None,
    ) -> bytes:
        return self.encoder.encode(self.build_document(title, content, theme, strategy))

    async def render_pdf(
        self,
        title: str,
        content: str,
        theme: Optional[ThemeRef] = None,
        strategy: Optional[ColumnStrategy] = None,
    ) -> bytes:
        document = self.build_document(title, content, theme, strategy)
        data = await asyncio.to_thread(self.encoder.encode, document)
        return await self.convert_docx(data)

    async def convert_docx(self, data: bytes) -> bytes:
        if self.orchestrator is None:
            raise RuntimeError("Pipeline has no conversion orchestrator configured.")
        return await self.orchestrator.convert(data, ".docx", ".pdf")
