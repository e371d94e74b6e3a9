"""Core attachment types shared by the parsing helpers."""

from __future__ import annotations

from dataclasses import dataclass


class AttachmentError(RuntimeError):
    """Raised when an attachment cannot be downloaded or read."""


@dataclass(frozen=True)
class Attachment:
    """Binary content handed to a provider alongside the prompt."""

    data: bytes
    mime_type: str
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    def is_pdf(self) -> bool:
        return self.mime_type.lower() == "application/pdf" or self.filename.lower().endswith(
            ".pdf"
        )

    def is_text(self) -> bool:
        return self.mime_type.lower().startswith("text/")
