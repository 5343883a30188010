"""
Document parsers used by the parsing worker.

PDFs go through LangChain's PyPDFLoader (one Document per page) and are
rendered as markdown with a heading per page. Plain text and markdown
uploads are decoded as UTF-8.

Dependencies: langchain_community.document_loaders, langchain_core
System role: Raw file to markdown conversion
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from langchain_community.document_loaders import PyPDFLoader
from langchain_core.documents import Document
from pydantic import BaseModel

from kb_engine.boundary.db.models.parsing_job_model import ParsingMode
from kb_engine.core.exceptions import ParsingError
from kb_engine.core.parsing.page_counter import is_pdf

logger = logging.getLogger(__name__)


class ParsedDocument(BaseModel):
    """Parser output."""

    markdown: str
    pages: int


class DocumentParser(ABC):
    """Converts raw file bytes to markdown."""

    @abstractmethod
    def parse(self, data: bytes, file_name: str, mode: ParsingMode) -> ParsedDocument:
        """
        Parse a file.

        Raises:
            ParsingError: When no usable text can be produced
        """


class PdfParser(DocumentParser):
    """Parse PDF documents page by page."""

    def parse(self, data: bytes, file_name: str, mode: ParsingMode) -> ParsedDocument:
        temp_dir = tempfile.mkdtemp(prefix="kb_parse_")
        local_path = os.path.join(temp_dir, PurePosixPath(file_name).name or "upload.pdf")
        try:
            with open(local_path, "wb") as fh:
                fh.write(data)
            documents = PyPDFLoader(local_path).load()
        except Exception as e:
            raise ParsingError(f"Failed to parse PDF: {e}", {"file_name": file_name}) from e
        finally:
            if os.path.exists(local_path):
                os.remove(local_path)
            os.rmdir(temp_dir)

        markdown = self._to_markdown(documents)
        if not markdown.strip():
            raise ParsingError(
                "PDF document contains no extractable text",
                {"file_name": file_name},
            )

        logger.info(
            f"{__name__}:parse - Parsed PDF",
            extra={"file_name": file_name, "pages": len(documents), "mode": mode.value},
        )
        return ParsedDocument(markdown=markdown, pages=len(documents))

    @staticmethod
    def _to_markdown(documents: list[Document]) -> str:
        sections = []
        for number, doc in enumerate(documents, start=1):
            text = doc.page_content.strip()
            if text:
                sections.append(f"## Page {number}\n\n{text}")
        return "\n\n".join(sections)


class TextParser(DocumentParser):
    """Decode plain text and markdown uploads."""

    def parse(self, data: bytes, file_name: str, mode: ParsingMode) -> ParsedDocument:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParsingError("File is not valid UTF-8 text", {"file_name": file_name}) from e
        if not text.strip():
            raise ParsingError("File contains no text", {"file_name": file_name})
        return ParsedDocument(markdown=text.strip(), pages=1)


class DocumentParserRouter(DocumentParser):
    """Dispatch to the PDF or text parser by file type."""

    def __init__(
        self,
        pdf_parser: DocumentParser | None = None,
        text_parser: DocumentParser | None = None,
    ) -> None:
        self._pdf = pdf_parser or PdfParser()
        self._text = text_parser or TextParser()

    def parse(self, data: bytes, file_name: str, mode: ParsingMode) -> ParsedDocument:
        parser = self._pdf if is_pdf(file_name, data) else self._text
        return parser.parse(data, file_name, mode)
