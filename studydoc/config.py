"""Runtime settings loaded from config/settings.json (or $STUDYDOC_CONFIG)."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from studydoc.docs.convert import LibreOfficeRenderer, PandocRenderer, Renderer, WordRenderer
from studydoc.docs.model import DEFAULT_COLUMN_GAP_TWIPS, DEFAULT_MARGIN_TWIPS, ColumnStrategy
from studydoc.log import get_logger
from studydoc.style import DEFAULT_THEME, available_themes

logger = get_logger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
CONFIG_PATH = os.path.join(PROJECT_ROOT, "config", "settings.json")


@dataclass(frozen=True)
class RendererSpec:
    name: str
    executable: Optional[str] = None
    enabled: bool = True


DEFAULT_RENDERERS: Tuple[RendererSpec, ...] = (
    RendererSpec("libreoffice", "soffice"),
    RendererSpec("pandoc", "pandoc"),
    RendererSpec("word"),
)


@dataclass(frozen=True)
class Settings:
    theme: str = DEFAULT_THEME
    columns: ColumnStrategy = ColumnStrategy.NATIVE
    margin_twips: int = DEFAULT_MARGIN_TWIPS
    column_gap_twips: int = DEFAULT_COLUMN_GAP_TWIPS
    column_separator: bool = True
    renderers: Tuple[RendererSpec, ...] = DEFAULT_RENDERERS
    pdf_engine: str = "wkhtmltopdf"
    renderer_timeout: Optional[float] = 60.0
    max_concurrent_renders: int = 2
    temp_dir: Optional[str] = None
    log_level: str = "INFO"


_KNOWN_RENDERERS = ("libreoffice", "pandoc", "word")


def _as_int(raw: Dict[str, Any], key: str, default: int, minimum: int = 0) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"'{key}' must be an integer >= {minimum}, got {value!r}")
    return value


def _as_bool(raw: Dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


def _parse_renderers(value: Any) -> Tuple[RendererSpec, ...]:
    if not isinstance(value, list) or not value:
        raise ValueError("'renderers' must be a non-empty list")
    specs: List[RendererSpec] = []
    for item in value:
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict) or not item.get("name"):
            raise ValueError(f"Renderer entry must be a name or an object with 'name': {item!r}")
        name = str(item["name"]).strip().lower()
        if name not in _KNOWN_RENDERERS:
            raise ValueError(f"Unknown renderer '{name}'. Known: {', '.join(_KNOWN_RENDERERS)}")
        specs.append(RendererSpec(name=name, executable=item.get("executable"), enabled=bool(item.get("enabled", True))))
    if not any(s.enabled for s in specs):
        raise ValueError("At least one renderer must be enabled")
    return tuple(specs)


def settings_from_dict(raw: Dict[str, Any]) -> Settings:
    """Validate a raw settings mapping; unknown keys are ignored with a warning."""
    defaults = Settings()
    unknown = set(raw) - set(Settings.__dataclass_fields__)
    if unknown:
        logger.warning("Ignoring unknown settings keys: %s", ", ".join(sorted(unknown)))

    theme = str(raw.get("theme", defaults.theme)).strip().lower()
    if theme not in available_themes():
        raise ValueError(f"'theme' must be one of {', '.join(available_themes())}, got {theme!r}")

    try:
        columns = ColumnStrategy(str(raw.get("columns", defaults.columns.value)).strip().lower())
    except ValueError:
        raise ValueError(f"'columns' must be 'native' or 'table', got {raw.get('columns')!r}") from None

    timeout = raw.get("renderer_timeout", defaults.renderer_timeout)
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ValueError(f"'renderer_timeout' must be a number or null, got {timeout!r}")
        # <= 0 disables the timeout
        timeout = float(timeout) if timeout > 0 else None

    return Settings(
        theme=theme,
        columns=columns,
        margin_twips=_as_int(raw, "margin_twips", defaults.margin_twips),
        column_gap_twips=_as_int(raw, "column_gap_twips", defaults.column_gap_twips),
        column_separator=_as_bool(raw, "column_separator", defaults.column_separator),
        renderers=_parse_renderers(raw["renderers"]) if "renderers" in raw else defaults.renderers,
        pdf_engine=str(raw.get("pdf_engine") or defaults.pdf_engine),
        renderer_timeout=timeout,
        max_concurrent_renders=_as_int(raw, "max_concurrent_renders", defaults.max_concurrent_renders, minimum=1),
        temp_dir=raw.get("temp_dir") or None,
        log_level=str(raw.get("log_level") or defaults.log_level).upper(),
    )


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from JSON; a missing file yields defaults.

    Raises:
        ValueError: If the file is not valid JSON or a value is invalid.
    """
    path = path or os.environ.get("STUDYDOC_CONFIG") or CONFIG_PATH
    if not os.path.exists(path):
        logger.warning("Settings file not found at %s, using defaults", path)
        return Settings()

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = json.load(f) or {}
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    return settings_from_dict(raw)


def build_renderers(settings: Settings) -> List[Renderer]:
    """Instantiate the enabled renderers in configured priority order."""
    renderers: List[Renderer] = []
    for spec in settings.renderers:
        if not spec.enabled:
            continue
        if spec.name == "libreoffice":
            renderers.append(LibreOfficeRenderer(spec.executable or "soffice"))
        elif spec.name == "pandoc":
            renderers.append(PandocRenderer(spec.executable or "pandoc", pdf_engine=settings.pdf_engine))
        elif spec.name == "word":
            renderers.append(WordRenderer())
    return renderers
