import asyncio

from studydoc.config import Settings, RendererSpec
from studydoc.docs.convert import LibreOfficeRenderer, PandocRenderer
from studydoc.docs.docx_io import DocxEncoder
from studydoc.docs.model import ColumnSpec, ColumnStrategy, TableEmulation
from studydoc.docs.pipeline import StudyGuidePipeline


class FlatEncoder(DocxEncoder):
    supports_native_columns = False


def test_native_request_falls_back_to_table_without_encoder_support():
    pipeline = StudyGuidePipeline(strategy=ColumnStrategy.NATIVE, encoder=FlatEncoder())
    doc = pipeline.build_document("T", "a\n\nb\n\nc")
    assert isinstance(doc.sections[0].columns, TableEmulation)


def test_per_call_overrides():
    pipeline = StudyGuidePipeline(theme="formal", strategy=ColumnStrategy.TABLE)
    doc = pipeline.build_document("T", "Main Idea: x", theme="banner", strategy=ColumnStrategy.NATIVE)
    assert isinstance(doc.sections[0].columns, ColumnSpec)
    assert doc.sections[0].blocks[1].shading == "1F3A5F"


def test_render_pdf_feeds_encoded_docx_to_renderers(buffer, make_renderer):
    from studydoc.docs.convert import ConversionOrchestrator

    renderer = make_renderer("libreoffice", output=b"%PDF")
    pipeline = StudyGuidePipeline(orchestrator=ConversionOrchestrator([renderer], buffer=buffer))
    assert asyncio.run(pipeline.render_pdf("T", "body")) == b"%PDF"
    assert renderer.seen_input == pipeline.render_docx("T", "body")


def test_from_settings_wires_layout_and_chain(tmp_path):
    settings = Settings(
        theme="underline",
        columns=ColumnStrategy.TABLE,
        margin_twips=720,
        renderers=(RendererSpec("pandoc", "/opt/pandoc"), RendererSpec("libreoffice"), RendererSpec("word", enabled=False)),
        pdf_engine="weasyprint",
        renderer_timeout=None,
        max_concurrent_renders=4,
        temp_dir=str(tmp_path),
    )
    pipeline = StudyGuidePipeline.from_settings(settings)
    assert pipeline.theme.name == "underline"
    assert pipeline.strategy is ColumnStrategy.TABLE
    assert pipeline.layout.margins.top == 720
    renderers = pipeline.orchestrator.renderers
    assert [type(r) for r in renderers] == [PandocRenderer, LibreOfficeRenderer]
    assert renderers[0].executable == "/opt/pandoc"
    assert renderers[0].pdf_engine == "weasyprint"
    assert pipeline.orchestrator.timeout is None
    assert pipeline.orchestrator.buffer.base_dir == str(tmp_path)
