"""Locate, download, and render file attachments referenced by prompts."""

from __future__ import annotations

import logging
import mimetypes
import re
from urllib.parse import unquote, urlparse

import requests

from .base import Attachment, AttachmentError
from .pdf import extract_pdf_text

logger = logging.getLogger(__name__)

USER_AGENT = "prompt-relay/1.0"
DEFAULT_TIMEOUT = 60
SUPPORTED_SUFFIXES = (".pdf", ".txt", ".md", ".png", ".jpg", ".jpeg", ".webp")

_MARKDOWN_LINK_PATTERN = re.compile(r"!?\[([^\]]*)\]\((https?://[^)\s]+)\)")


def _is_attachment_url(url: str) -> bool:
    parsed = urlparse(url)
    if parsed.hostname == "github.com" and parsed.path.startswith("/user-attachments/"):
        return True
    return parsed.path.lower().endswith(SUPPORTED_SUFFIXES)


def find_attachment_url(text: str) -> tuple[str, str] | None:
    """Return ``(label, url)`` for the first Markdown link pointing at a supported file."""

    for match in _MARKDOWN_LINK_PATTERN.finditer(text):
        label, url = match.group(1), match.group(2)
        if _is_attachment_url(url):
            return label, url
    return None


def _filename_for(url: str, label: str) -> str:
    name = unquote(urlparse(url).path.rsplit("/", 1)[-1])
    if "." not in name and label:
        return label
    return name


def download_attachment(
    url: str,
    *,
    label: str = "",
    token: str | None = None,
    timeout: int = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
) -> Attachment:
    """Fetch ``url`` and wrap the bytes with their MIME type."""

    http = session or requests.Session()
    headers = {"User-Agent": USER_AGENT}
    if token and urlparse(url).hostname in {"github.com", "api.github.com"}:
        headers["Authorization"] = f"Bearer {token}"

    try:
        response = http.get(url, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise AttachmentError(f"Failed to download attachment {url}: {exc}") from exc

    filename = _filename_for(url, label)
    content_type = response.headers.get("Content-Type", "").split(";", 1)[0].strip()
    if not content_type or content_type == "application/octet-stream":
        guessed, _encoding = mimetypes.guess_type(filename)
        content_type = guessed or content_type or "application/octet-stream"

    logger.info(
        "Downloaded attachment %s (%s, %d bytes)", filename, content_type, len(response.content)
    )
    return Attachment(data=response.content, mime_type=content_type, filename=filename)


def attachment_text(attachment: Attachment) -> str | None:
    """Textual rendition of an attachment, or ``None`` for binary-only content."""

    if attachment.is_pdf():
        return extract_pdf_text(attachment.data)
    if attachment.is_text():
        return attachment.data.decode("utf-8", errors="replace")
    return None


__all__ = [
    "Attachment",
    "AttachmentError",
    "attachment_text",
    "download_attachment",
    "find_attachment_url",
]
