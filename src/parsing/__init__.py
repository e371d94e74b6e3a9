"""Attachment download and text extraction helpers."""

from .attachments import attachment_text, download_attachment, find_attachment_url
from .base import Attachment, AttachmentError
from .pdf import extract_pdf_text

__all__ = [
    "Attachment",
    "AttachmentError",
    "attachment_text",
    "download_attachment",
    "extract_pdf_text",
    "find_attachment_url",
]
