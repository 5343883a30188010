"""Document parsing: page counting, pricing, parsers and polling."""

from kb_engine.core.parsing.page_counter import count_pages, is_pdf
from kb_engine.core.parsing.parser import (
    DocumentParser,
    DocumentParserRouter,
    ParsedDocument,
    PdfParser,
    TextParser,
)
from kb_engine.core.parsing.polling import wait_for_job
from kb_engine.core.parsing.pricing import ParsingCostCalculator

__all__ = [
    "count_pages",
    "is_pdf",
    "DocumentParser",
    "DocumentParserRouter",
    "ParsedDocument",
    "PdfParser",
    "TextParser",
    "wait_for_job",
    "ParsingCostCalculator",
]
