"""
Page counting for uploaded files.

PDF pages are counted with pypdf; other formats get a fixed estimate.

Dependencies: pypdf
System role: Input to parsing cost estimation
"""

import io
import logging
from pathlib import PurePosixPath

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from kb_engine.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def is_pdf(file_name: str, data: bytes | None = None) -> bool:
    """True for a .pdf name or a %PDF header."""
    if PurePosixPath(file_name).suffix.lower() == ".pdf":
        return True
    return bool(data) and data[:5] == b"%PDF-"


def count_pages(data: bytes, file_name: str, non_pdf_estimate: int = 5) -> int:
    """
    Count pages of an uploaded file.

    Args:
        data: Raw file bytes
        file_name: Original file name
        non_pdf_estimate: Page count assumed for non-PDF files

    Returns:
        int: Page count, at least 1

    Raises:
        ValidationError: When a PDF cannot be read
    """
    if not is_pdf(file_name, data):
        return max(1, non_pdf_estimate)

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = len(reader.pages)
    except (PdfReadError, ValueError, OSError) as e:
        logger.warning(
            f"{__name__}:count_pages - Unreadable PDF",
            extra={"file_name": file_name, "error": str(e)},
        )
        raise ValidationError(f"Could not read PDF: {e}", field="file") from e

    if pages == 0:
        raise ValidationError("PDF has no pages", field="file")
    return pages
