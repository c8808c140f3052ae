"""Local document text extraction.

Used by the extraction flow when the configured model provider cannot
receive documents inline.

Supported formats:
- PDF (pymupdf / fitz), page by page
- EPUB (ebooklib + BeautifulSoup), spine order
- HTML (BeautifulSoup)
- any text/* type (decoded as UTF-8)

Dependencies:
- pymupdf (fitz)
- ebooklib
- beautifulsoup4
- langdetect
"""

from __future__ import annotations

import tempfile
import warnings
from dataclasses import dataclass
from pathlib import Path

import ebooklib
import fitz
import structlog
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from ebooklib import epub
from langdetect import DetectorFactory, detect

# Suppress XML parser warning for EPUB content
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

# Make langdetect deterministic
DetectorFactory.seed = 0

logger = structlog.get_logger(__name__)

MIN_CHARS_PER_PAGE = 100  # Below this, consider page as "empty" or scanned
SCANNED_PDF_THRESHOLD = 0.5  # If >50% pages are "empty", likely scanned

PDF_TYPES = {"application/pdf"}
EPUB_TYPES = {"application/epub+zip"}
HTML_TYPES = {"text/html", "application/xhtml+xml"}


@dataclass
class DocumentText:
    """Text extracted from a document."""

    text: str
    mime_type: str
    pages: int = 0
    detected_language: str | None = None
    is_likely_scanned: bool = False


class DocumentTextError(Exception):
    """Base exception for local extraction errors."""

    pass


class UnsupportedDocumentError(DocumentTextError):
    """Raised when no local extractor handles the MIME type."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"No local text extractor for '{mime_type}'")


class ProtectedPdfError(DocumentTextError):
    """Raised when PDF is password-protected."""

    pass


def supports_local_extraction(mime_type: str) -> bool:
    """Whether :func:`extract_text` can handle this MIME type."""
    return (
        mime_type in PDF_TYPES
        or mime_type in EPUB_TYPES
        or mime_type in HTML_TYPES
        or mime_type.startswith("text/")
    )


def extract_text(data: bytes, mime_type: str) -> DocumentText:
    """Extract plain text from document bytes.

    Raises:
        UnsupportedDocumentError: For media types with no local extractor
        ProtectedPdfError: For password-protected PDFs
    """
    if mime_type in PDF_TYPES:
        result = _extract_pdf(data)
    elif mime_type in EPUB_TYPES:
        result = _extract_epub(data)
    elif mime_type in HTML_TYPES:
        result = DocumentText(text=_html_to_text(data), mime_type=mime_type)
    elif mime_type.startswith("text/"):
        result = DocumentText(
            text=data.decode("utf-8", errors="replace").strip(),
            mime_type=mime_type,
        )
    else:
        raise UnsupportedDocumentError(mime_type)

    if result.text:
        result.detected_language = _detect_language(result.text)

    logger.info(
        "document_text.extracted",
        mime_type=mime_type,
        chars=len(result.text),
        pages=result.pages,
        detected_language=result.detected_language,
    )
    return result


def _extract_pdf(data: bytes) -> DocumentText:
    doc = fitz.open(stream=data, filetype="pdf")

    if doc.is_encrypted:
        doc.close()
        raise ProtectedPdfError("PDF is password-protected")

    parts = []
    empty_pages = 0
    for page in doc:
        page_text = page.get_text()
        if len(page_text.strip()) < MIN_CHARS_PER_PAGE:
            empty_pages += 1
        if page_text.strip():
            parts.append(page_text.strip())

    total_pages = len(doc)
    doc.close()

    empty_ratio = empty_pages / total_pages if total_pages > 0 else 0
    is_scanned = empty_ratio > SCANNED_PDF_THRESHOLD
    if is_scanned:
        logger.warning(
            "document_text.likely_scanned",
            empty_ratio=f"{empty_ratio:.0%}",
            hint="Consider OCR or a media-capable model provider",
        )

    return DocumentText(
        text="\n\n".join(parts),
        mime_type="application/pdf",
        pages=total_pages,
        is_likely_scanned=is_scanned,
    )


def _extract_epub(data: bytes) -> DocumentText:
    # ebooklib reads from a path
    with tempfile.TemporaryDirectory() as tmp_dir:
        epub_path = Path(tmp_dir) / "document.epub"
        epub_path.write_bytes(data)
        try:
            book = epub.read_epub(str(epub_path), options={"ignore_ncx": True})
        except Exception as e:
            raise DocumentTextError(f"Invalid EPUB: {e}") from e

    parts = []
    chapters = 0
    for item_id, _linear in book.spine:
        item = book.get_item_with_id(item_id)
        if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
            continue
        chapters += 1
        text = _html_to_text(item.get_content())
        if text:
            parts.append(text)

    return DocumentText(
        text="\n\n".join(parts),
        mime_type="application/epub+zip",
        pages=chapters,
    )


def _html_to_text(html_content: bytes | str) -> str:
    soup = BeautifulSoup(html_content, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()

    lines = [line.strip() for line in soup.get_text(separator="\n").splitlines()]
    return "\n".join(line for line in lines if line)


def _detect_language(text: str) -> str | None:
    """Detect language of text using langdetect."""
    try:
        sample = text[:10000] if len(text) > 10000 else text
        return detect(sample)
    except Exception as e:
        logger.debug("document_text.language_detection_failed", error=str(e))
        return None
