# pdf upload validation using pymupdf
import logging
from dataclasses import dataclass

import fitz  # PyMuPDF

from .exceptions import InvalidUploadError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


# basic facts about an uploaded pdf
@dataclass
class PDFInfo:
    page_count: int
    title: str
    encrypted: bool


def inspect_pdf(data: bytes, filename: str = "", max_bytes: int = 10 * 1024 * 1024) -> PDFInfo:
    """Check that the bytes are a readable PDF within the size limit"""
    if not data:
        raise InvalidUploadError(f"{filename or 'File'} is empty")
    if len(data) > max_bytes:
        raise InvalidUploadError(
            f"{filename or 'File'} is {len(data) / 1024 / 1024:.1f} MB; the limit is {max_bytes // (1024 * 1024)} MB"
        )

    try:
        # open pdf document from memory
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise InvalidUploadError(f"{filename or 'File'} is not a readable PDF: {e}") from e

    try:
        if doc.page_count == 0:
            raise InvalidUploadError(f"{filename or 'File'} has no pages")
        # the pdf title metadata may be empty
        title = (doc.metadata or {}).get("title") or ""
        info = PDFInfo(page_count=doc.page_count, title=title.strip(), encrypted=doc.needs_pass)
    finally:
        doc.close()

    logger.debug(f"Inspected {filename}: {info.page_count} pages")
    return info
