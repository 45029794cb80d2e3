"""Request handlers for the study-guide document service.

Handlers take a decoded JSON payload and return a `ServiceResponse`; the
HTTP framework hosting them only has to copy status, headers and body.
Validation errors become 400 responses, every other failure a 500 response
carrying a diagnostic `details` string. No partial document is returned.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from studydoc.docs.convert import PDF_MIME
from studydoc.docs.docx_io import DOCX_MIME
from studydoc.docs.model import ColumnStrategy
from studydoc.docs.pipeline import StudyGuidePipeline
from studydoc.errors import StudyDocError, ValidationError
from studydoc.log import get_logger

logger = get_logger(__name__)

DEFAULT_TITLE = "Study Guide"
DEFAULT_CONTENT = "No content provided."
CONVERTED_FILENAME = "converted.pdf"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")


def sanitize_filename(title: str) -> str:
    """Replace every character outside [A-Za-z0-9] with '_'."""
    return _UNSAFE_FILENAME_CHARS.sub("_", title)


@dataclass
class ServiceResponse:
    status: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def media_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


def error_response(status: int, error: str, details: Optional[str] = None) -> ServiceResponse:
    body: Dict[str, str] = {"error": error}
    if details:
        body["details"] = details
    return ServiceResponse(
        status=status,
        body=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


def file_response(data: bytes, media_type: str, filename: str) -> ServiceResponse:
    return ServiceResponse(
        status=200,
        body=data,
        headers={
            "Content-Type": media_type,
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )


@dataclass(frozen=True)
class GuideRequest:
    title: str = DEFAULT_TITLE
    content: str = DEFAULT_CONTENT
    theme: Optional[str] = None
    columns: Optional[ColumnStrategy] = None


def _text_field(payload: Mapping[str, Any], key: str, default: Optional[str]) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    if not value.strip():
        raise ValidationError(f"'{key}' must not be empty")
    return value


def parse_guide_request(payload: Any) -> GuideRequest:
    """Validate a generation payload; absent title/content fall back to defaults."""
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")

    columns = _text_field(payload, "columns", None)
    try:
        strategy = ColumnStrategy(columns.strip().lower()) if columns else None
    except ValueError:
        raise ValidationError(f"'columns' must be 'native' or 'table', got {columns!r}") from None

    return GuideRequest(
        title=_text_field(payload, "title", DEFAULT_TITLE),
        content=_text_field(payload, "content", DEFAULT_CONTENT),
        theme=_text_field(payload, "theme", None),
        columns=strategy,
    )


def decode_docx_payload(payload: Any) -> bytes:
    if not isinstance(payload, Mapping) or not payload.get("docxBuffer"):
        raise ValidationError("No DOCX buffer provided")
    value = payload["docxBuffer"]
    if not isinstance(value, str):
        raise ValidationError("'docxBuffer' must be a base64 string")
    try:
        # MIME-style base64 wraps lines every 76 characters
        data = base64.b64decode("".join(value.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"'docxBuffer' is not valid base64: {e}") from None
    if not data:
        raise ValidationError("No DOCX buffer provided")
    return data


class GuideService:
    """The three operations of the document service over one pipeline."""

    def __init__(self, pipeline: StudyGuidePipeline, docx_strategy: Optional[ColumnStrategy] = ColumnStrategy.TABLE) -> None:
        self.pipeline = pipeline
        # used for Word downloads when the request names no column strategy
        self.docx_strategy = docx_strategy

    async def generate_pdf(self, payload: Any) -> ServiceResponse:
        async def action() -> ServiceResponse:
            req = parse_guide_request(payload)
            pdf = await self.pipeline.render_pdf(req.title, req.content, req.theme, req.columns)
            return file_response(pdf, PDF_MIME, f"{sanitize_filename(req.title)}.pdf")

        return await self._guard("Failed to generate PDF", action)

    async def generate_docx(self, payload: Any) -> ServiceResponse:
        async def action() -> ServiceResponse:
            req = parse_guide_request(payload)
            document = self.pipeline.build_document(
                req.title, req.content, req.theme, req.columns or self.docx_strategy
            )
            data = await asyncio.to_thread(self.pipeline.encoder.encode, document)
            return file_response(data, DOCX_MIME, f"{sanitize_filename(req.title)}.docx")

        return await self._guard("Failed to generate Word document", action)

    async def convert_docx_to_pdf(self, payload: Any) -> ServiceResponse:
        async def action() -> ServiceResponse:
            data = decode_docx_payload(payload)
            pdf = await self.pipeline.convert_docx(data)
            return file_response(pdf, PDF_MIME, CONVERTED_FILENAME)

        return await self._guard("Failed to convert DOCX to PDF", action)

    async def _guard(self, failure: str, action: Callable[[], Awaitable[ServiceResponse]]) -> ServiceResponse:
        try:
            return await action()
        except ValidationError as e:
            logger.info("Rejected request: %s", e)
            return error_response(400, str(e))
        except StudyDocError as e:
            logger.error("%s: %s", failure, e)
            return error_response(500, failure, str(e))
        except Exception as e:
            logger.exception(failure)
            return error_response(500, failure, f"{type(e).__name__}: {e}")
