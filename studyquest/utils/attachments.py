"""
Proof attachment classification

Decides how a proof file should be previewed from its URL and an optional
MIME type hint. Checked in order:
1. MIME hint (image/*, *pdf*, word/office documents, text/*)
2. MIME type embedded in a data: URI
3. File extension of the URL path
"""

import logging
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class AttachmentKind(str, Enum):
    """Preview category for a proof attachment"""
    IMAGE = "image"
    PDF = "pdf"
    TEXT = "text"
    DOCUMENT = "document"
    UNKNOWN = "unknown"


IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "bmp", "svg", "heic"}
DOCUMENT_EXTENSIONS = {"doc", "docx", "odt", "rtf", "ppt", "pptx", "xls", "xlsx"}
TEXT_EXTENSIONS = {"txt", "md", "csv", "json"}

DOCUMENT_MIME_MARKERS = ("msword", "vnd.ms-", "wordprocessingml", "opendocument", "officedocument", "rtf")


def _classify_mime(mime_type: str) -> AttachmentKind:
    mime_type = mime_type.strip().lower()

    if mime_type.startswith("image/"):
        return AttachmentKind.IMAGE
    if "pdf" in mime_type:
        return AttachmentKind.PDF
    if any(marker in mime_type for marker in DOCUMENT_MIME_MARKERS):
        return AttachmentKind.DOCUMENT
    if mime_type.startswith("text/"):
        return AttachmentKind.TEXT
    return AttachmentKind.UNKNOWN


def _classify_extension(url: str) -> AttachmentKind:
    path = urlparse(url).path
    filename = path.rsplit("/", 1)[-1]
    if "." not in filename:
        return AttachmentKind.UNKNOWN

    extension = filename.rsplit(".", 1)[-1].lower()
    if extension in IMAGE_EXTENSIONS:
        return AttachmentKind.IMAGE
    if extension == "pdf":
        return AttachmentKind.PDF
    if extension in DOCUMENT_EXTENSIONS:
        return AttachmentKind.DOCUMENT
    if extension in TEXT_EXTENSIONS:
        return AttachmentKind.TEXT
    return AttachmentKind.UNKNOWN


def classify_attachment(url: str, mime_hint: Optional[str] = None) -> AttachmentKind:
    """
    Classify a proof attachment for preview

    Args:
        url: File URL, storage path, or data: URI
        mime_hint: MIME type reported at upload time, if known

    Returns:
        AttachmentKind
    """
    if mime_hint:
        kind = _classify_mime(mime_hint)
        if kind != AttachmentKind.UNKNOWN:
            return kind

    if not url:
        return AttachmentKind.UNKNOWN

    if url.startswith("data:"):
        # data:[<mime>][;base64],<payload>
        header = url[len("data:"):].split(",", 1)[0]
        embedded_mime = header.split(";", 1)[0]
        return _classify_mime(embedded_mime) if embedded_mime else AttachmentKind.UNKNOWN

    kind = _classify_extension(url)
    if kind == AttachmentKind.UNKNOWN:
        logger.debug(f"Could not classify attachment: {url[:80]}")
    return kind
