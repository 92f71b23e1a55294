"""Upload classification and local decoding for the brainstorm step.

Plain-text files are read here. Images and PDFs are handed to the vision
extraction call; PDFs are opened locally first so that corrupt or oversized
documents are rejected before a model call is spent.
"""

import io
from enum import Enum
from pathlib import PurePath

import pdfplumber

TEXT_EXTENSIONS = frozenset({".txt", ".md"})
VISION_MIME_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}
ACCEPTED_EXTENSIONS = TEXT_EXTENSIONS | frozenset(VISION_MIME_TYPES)


class UploadKind(str, Enum):
    TEXT = "text"
    VISION = "vision"


class UploadError(ValueError):
    """The upload can't be ingested (type, encoding, or unreadable PDF)."""


def classify(filename: str | None, content_type: str | None = None) -> tuple[UploadKind, str]:
    """Return (kind, mime_type) for an upload.

    The extension decides; the declared content type is only a fallback for
    extension-less names, since browsers report inconsistent types for .md.
    """
    suffix = PurePath(filename or "").suffix.lower()
    if suffix in TEXT_EXTENSIONS:
        return UploadKind.TEXT, "text/plain"
    if suffix in VISION_MIME_TYPES:
        return UploadKind.VISION, VISION_MIME_TYPES[suffix]

    if not suffix and content_type:
        if content_type.startswith("text/"):
            return UploadKind.TEXT, "text/plain"
        if content_type in VISION_MIME_TYPES.values():
            return UploadKind.VISION, content_type

    accepted = ", ".join(sorted(ACCEPTED_EXTENSIONS))
    raise UploadError(f"Unsupported file type. Accepted: {accepted}")


def decode_text(data: bytes) -> str:
    """Decode a text upload. UTF-8 (with or without BOM) only."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise UploadError("Text files must be UTF-8 encoded")


def count_pdf_pages(pdf_bytes: bytes) -> int:
    """Open a PDF and return its page count. Raises UploadError if unreadable."""
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            return len(pdf.pages)
    except Exception as e:
        raise UploadError("Could not parse PDF file") from e


def check_pdf(pdf_bytes: bytes, max_pages: int) -> None:
    pages = count_pdf_pages(pdf_bytes)
    if pages == 0:
        raise UploadError("PDF has no pages")
    if pages > max_pages:
        raise UploadError(f"PDF too long ({pages} pages, max {max_pages})")


def append_block(existing: str, addition: str, separator: str = "\n") -> str:
    """Append text verbatim to accumulated raw input, without a leading separator."""
    if not addition.strip():
        return existing
    if not existing:
        return addition
    return f"{existing}{separator}{addition}"
