"""PDF text extraction using the pypdf library."""

from __future__ import annotations

import io
import re
from typing import Any

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .base import AttachmentError


def extract_pdf_text(data: bytes) -> str:
    """Return the text of every page, separated by blank lines.

    Pages without extractable text are skipped; an unreadable or
    undecryptable document raises :class:`AttachmentError`.
    """

    try:
        reader = PdfReader(io.BytesIO(data))
    except (PdfReadError, ValueError) as exc:
        raise AttachmentError(f"Failed to read PDF: {exc}") from exc

    if reader.is_encrypted and not _try_decrypt(reader):
        raise AttachmentError("PDF is encrypted and could not be decrypted")

    pages: list[str] = []
    for page in reader.pages:
        try:
            text = _extract_page_text(page)
        except PdfReadError:  # pragma: no cover - rare backend failure
            continue
        if text:
            pages.append(text)
    return "\n\n".join(pages)


def _try_decrypt(reader: PdfReader) -> bool:
    try:
        reader.decrypt("")
    except (PdfReadError, ValueError):  # pragma: no cover - depends on encrypted fixture availability
        return False
    return not reader.is_encrypted


def _extract_page_text(page: Any) -> str:
    try:
        text = page.extract_text(extraction_mode="layout", layout_mode_space_vertically=False)
    except TypeError:
        text = page.extract_text()

    if not text:
        return ""

    cleaned = text.replace("\u00a0", " ")
    return _normalize_layout_text(cleaned)


_INTRALINE_WHITESPACE_PATTERN = re.compile(r"[^\S\n]+")


def _normalize_layout_text(text: str) -> str:
    """Collapse excessive spacing without losing paragraph structure."""

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")

    result: list[str] = []
    previous_blank = False
    for raw in normalized.split("\n"):
        line = _INTRALINE_WHITESPACE_PATTERN.sub(" ", raw.strip())
        if not line:
            if result and not previous_blank:
                result.append("")
            previous_blank = True
            continue
        result.append(line)
        previous_blank = False

    return "\n".join(result).strip()


__all__ = ["extract_pdf_text"]
