import json

import pytest

from studydoc.config import (
    RendererSpec,
    Settings,
    build_renderers,
    load_settings,
    settings_from_dict,
)
from studydoc.docs.convert import LibreOfficeRenderer, PandocRenderer, WordRenderer
from studydoc.docs.model import ColumnStrategy


def _write(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return str(path)


def test_missing_file_yields_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "absent.json"))
    assert settings == Settings()
    assert [r.name for r in settings.renderers] == ["libreoffice", "pandoc", "word"]


def test_load_from_file(tmp_path):
    path = _write(tmp_path, {
        "theme": "Colorful",
        "columns": "table",
        "renderers": ["pandoc", {"name": "libreoffice", "executable": "/usr/bin/soffice"}],
        "renderer_timeout": 0,
        "max_concurrent_renders": 3,
        "column_separator": False,
        "log_level": "debug",
    })
    settings = load_settings(path)
    assert settings.theme == "colorful"
    assert settings.columns is ColumnStrategy.TABLE
    assert settings.renderers == (RendererSpec("pandoc"), RendererSpec("libreoffice", "/usr/bin/soffice"))
    assert settings.renderer_timeout is None
    assert settings.max_concurrent_renders == 3
    assert settings.column_separator is False
    assert settings.log_level == "DEBUG"


def test_env_var_selects_file(tmp_path, monkeypatch):
    monkeypatch.setenv("STUDYDOC_CONFIG", _write(tmp_path, {"theme": "banner"}))
    assert load_settings().theme == "banner"


@pytest.mark.parametrize("raw", [
    {"theme": "neon"},
    {"columns": "three"},
    {"renderers": []},
    {"renderers": ["ghostscript"]},
    {"renderers": [{"name": "pandoc", "enabled": False}]},
    {"margin_twips": -1},
    {"max_concurrent_renders": 0},
    {"renderer_timeout": "soon"},
    {"column_separator": "false"},
    {"column_separator": 0},
])
def test_invalid_values_raise(raw):
    with pytest.raises(ValueError):
        settings_from_dict(raw)


def test_invalid_json_raises(tmp_path):
    with pytest.raises(ValueError):
        load_settings(_write(tmp_path, "{not json"))


def test_build_renderers_keeps_order_and_skips_disabled():
    settings = Settings(
        renderers=(RendererSpec("word"), RendererSpec("pandoc", enabled=False), RendererSpec("libreoffice")),
    )
    renderers = build_renderers(settings)
    assert [type(r) for r in renderers] == [WordRenderer, LibreOfficeRenderer]
    assert renderers[1].executable == "soffice"


def test_pandoc_gets_configured_engine():
    (pandoc,) = build_renderers(Settings(renderers=(RendererSpec("pandoc"),), pdf_engine="xelatex"))
    assert isinstance(pandoc, PandocRenderer)
    assert pandoc.build_args("in.docx", "out.pdf")[-1] == "--pdf-engine=xelatex"
