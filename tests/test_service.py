import asyncio
import base64
import os

from studydoc.docs.convert import ConversionOrchestrator
from studydoc.docs.docx_io import DOCX_MIME, read_docx
from studydoc.docs.pipeline import StudyGuidePipeline
from studydoc.service import GuideService, parse_guide_request, sanitize_filename

CONTENT = "Main Idea: Plate tectonics\n\nThe crust floats on the mantle."


def _service(buffer, *renderers, **kwargs):
    orch = ConversionOrchestrator(list(renderers), buffer=buffer)
    return GuideService(StudyGuidePipeline(orchestrator=orch, **kwargs))


def test_sanitize_filename_replaces_every_non_alphanumeric():
    assert sanitize_filename("My Guide! #1") == "My_Guide___1"
    assert sanitize_filename("Study Guide") == "Study_Guide"
    assert sanitize_filename("../etc/passwd") == "___etc_passwd"


def test_generate_pdf_uses_fallback_and_cleans_up(buffer, make_renderer):
    primary = make_renderer("libreoffice", fail=True)
    fallback = make_renderer("pandoc", output=b"%PDF-1.7 fallback")
    service = _service(buffer, primary, fallback)

    resp = asyncio.run(service.generate_pdf({"title": "Earth Science", "content": CONTENT}))

    assert resp.status == 200
    assert resp.body == b"%PDF-1.7 fallback"
    assert resp.media_type == "application/pdf"
    assert resp.headers["Content-Disposition"] == 'attachment; filename="Earth_Science.pdf"'
    assert os.listdir(buffer.base_dir) == []
    # the renderer received the encoded DOCX of the assembled guide
    paragraphs = read_docx(fallback.seen_input)
    assert [p.text for p in paragraphs] == ["Earth Science", "Main Idea: Plate tectonics", "The crust floats on the mantle."]


def test_generate_pdf_all_renderers_failing_is_server_error(buffer, make_renderer):
    service = _service(buffer, make_renderer("libreoffice", fail=True), make_renderer("pandoc", fail=True))

    resp = asyncio.run(service.generate_pdf({"content": CONTENT}))

    assert resp.status == 500
    body = resp.json()
    assert body["error"] == "Failed to generate PDF"
    assert "libreoffice" in body["details"] and "pandoc" in body["details"]
    assert os.listdir(buffer.base_dir) == []


def test_validation_rejects_before_any_processing(buffer, make_renderer):
    renderer = make_renderer("libreoffice", output=b"%PDF")
    service = _service(buffer, renderer)

    for payload in ({"content": "   "}, {"title": 5}, {"content": CONTENT, "theme": "neon"},
                    {"content": CONTENT, "columns": "three"}, ["not", "an", "object"]):
        resp = asyncio.run(service.generate_pdf(payload))
        assert resp.status == 400, payload
        assert "error" in resp.json()
    assert renderer.calls == []


def test_defaults_for_missing_title_and_content():
    req = parse_guide_request({})
    assert req.title == "Study Guide"
    assert req.content == "No content provided."
    assert parse_guide_request(None).title == "Study Guide"


def test_generate_docx_defaults_to_table_layout(buffer, make_renderer):
    service = _service(buffer, make_renderer("libreoffice", output=b"%PDF"))

    resp = asyncio.run(service.generate_docx({}))

    assert resp.status == 200
    assert resp.media_type == DOCX_MIME
    assert resp.headers["Content-Disposition"] == 'attachment; filename="Study_Guide.docx"'
    assert [p.text for p in read_docx(resp.body)] == ["Study Guide", "No content provided."]


def test_generate_docx_honours_theme_and_columns(buffer, make_renderer):
    service = _service(buffer, make_renderer("libreoffice", output=b"%PDF"))
    resp = asyncio.run(service.generate_docx({"content": CONTENT, "theme": "heading", "columns": "native"}))
    paragraphs = read_docx(resp.body)
    assert paragraphs[0].heading_level == 0
    assert paragraphs[1].heading_level == 2


def test_convert_docx_to_pdf(buffer, make_renderer):
    renderer = make_renderer("libreoffice", output=b"%PDF converted")
    service = _service(buffer, renderer)
    payload = {"docxBuffer": base64.b64encode(b"PK fake docx").decode("ascii")}

    resp = asyncio.run(service.convert_docx_to_pdf(payload))

    assert resp.status == 200
    assert resp.body == b"%PDF converted"
    assert resp.headers["Content-Disposition"] == 'attachment; filename="converted.pdf"'
    assert renderer.seen_input == b"PK fake docx"


def test_convert_accepts_line_wrapped_base64(buffer, make_renderer):
    docx = b"PK" + bytes(range(256)) * 2
    renderer = make_renderer("libreoffice", output=b"%PDF")
    service = _service(buffer, renderer)
    wrapped = base64.encodebytes(docx).decode("ascii")
    assert "\n" in wrapped.strip()

    resp = asyncio.run(service.convert_docx_to_pdf({"docxBuffer": wrapped}))

    assert resp.status == 200
    assert renderer.seen_input == docx


def test_convert_requires_valid_buffer(buffer, make_renderer):
    service = _service(buffer, make_renderer("libreoffice", output=b"%PDF"))
    for payload in ({}, {"docxBuffer": ""}, {"docxBuffer": "not base64!"}, {"docxBuffer": 12}):
        resp = asyncio.run(service.convert_docx_to_pdf(payload))
        assert resp.status == 400, payload


def test_unexpected_failure_maps_to_server_error(buffer):
    class BrokenOrchestrator:
        async def convert(self, data, *args):
            raise OSError("disk full")

    service = GuideService(StudyGuidePipeline(orchestrator=BrokenOrchestrator()))
    resp = asyncio.run(service.generate_pdf({"content": CONTENT}))
    assert resp.status == 500
    assert "disk full" in resp.json()["details"]
