from __future__ import annotations

import io
import logging

from docx import Document
from docx.table import Table
from pypdf import PdfReader

from duelist.errors import ExtractionFailed, UnsupportedMediaType

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT = "text/plain"

SUPPORTED_MEDIA_TYPES = (PDF, DOCX, TEXT)


def _pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _docx_text(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    lines = []
    # paragraphs and tables in body order; syllabi often keep due dates in tables
    for block in doc.iter_inner_content():
        if isinstance(block, Table):
            for row in block.rows:
                lines.append("\t".join(cell.text for cell in row.cells))
        else:
            lines.append(block.text)
    return "\n".join(lines)


def _plain_text(data: bytes) -> str:
    return data.decode("utf-8")


_EXTRACTORS = {
    PDF: _pdf_text,
    DOCX: _docx_text,
    TEXT: _plain_text,
}


def normalize_media_type(media_type: str | None) -> str:
    """Drop parameters such as ``; charset=utf-8`` and lowercase the type."""
    if not media_type:
        return ""
    return media_type.split(";", 1)[0].strip().lower()


def is_supported(media_type: str | None) -> bool:
    return normalize_media_type(media_type) in _EXTRACTORS


def extract_text(data: bytes, media_type: str | None) -> str:
    """Return the plain text of an uploaded document.

    Raises UnsupportedMediaType for anything that is not PDF, DOCX or plain
    text (nothing is decoded in that case) and ExtractionFailed when the
    underlying decoder chokes on the bytes.
    """
    extractor = _EXTRACTORS.get(normalize_media_type(media_type))
    if extractor is None:
        raise UnsupportedMediaType()

    try:
        text = extractor(data)
    except Exception as e:
        logger.warning(f"Text extraction failed for {media_type}: {e}")
        raise ExtractionFailed(f"Failed to extract text: {e}") from e

    logger.info(f"Extracted {len(text)} characters from {media_type} document")
    return text
