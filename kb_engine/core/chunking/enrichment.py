"""
Context enrichment ahead of chunking.

Builds the text that is actually chunked and embedded: a title header,
a keywords line derived from the source variant, and the body. Q&A
content is rendered as question/answer lines so either side matches.

Dependencies: kb_engine.models.source
System role: Source-aware text preparation for ingestion
"""

from pathlib import PurePosixPath
from urllib.parse import urlparse

from kb_engine.models.source import (
    FileSource,
    LinkSource,
    ParsedJobSource,
    QuestionSource,
    SourcePayload,
)


def _hostname(url: str) -> str:
    host = urlparse(url if "://" in url else f"https://{url}").hostname or url
    return host.removeprefix("www.")


def resolve_title(source: SourcePayload, label: str | None) -> str:
    """
    Pick a display title for a source document.

    Uses the caller's label when present, otherwise a per-variant fallback.

    Args:
        source: Typed source payload
        label: Caller-supplied source label

    Returns:
        str: Non-empty title
    """
    if label and label.strip():
        return label.strip()
    if isinstance(source, FileSource):
        return source.file_name or "Unnamed file"
    if isinstance(source, LinkSource):
        return _hostname(source.url)
    if isinstance(source, QuestionSource):
        return source.questions[0]
    if isinstance(source, ParsedJobSource):
        return source.file_name
    return "Unnamed text"


def _keywords(source: SourcePayload) -> list[str]:
    if isinstance(source, FileSource) and source.file_name:
        stem = PurePosixPath(source.file_name).stem
        words = [w for w in stem.replace("-", " ").replace("_", " ").split() if w]
        if source.file_type:
            words.append(source.file_type)
        return words
    if isinstance(source, LinkSource):
        words = [_hostname(source.url)]
        words.extend(r.strip("/") for r in source.routes if r.strip("/"))
        return words
    if isinstance(source, QuestionSource):
        return [q.strip() for q in source.questions if q.strip()]
    if isinstance(source, ParsedJobSource):
        return [PurePosixPath(source.file_name).stem]
    return []


def build_indexable_text(content: str, title: str, source: SourcePayload) -> str:
    """
    Compose the text that will be chunked and embedded.

    Args:
        content: Submitted content (the answer, for Q&A sources)
        title: Resolved source title
        source: Typed source payload

    Returns:
        str: Enriched text
    """
    lines = [f"Title: {title}"]
    keywords = _keywords(source)
    if keywords:
        lines.append(f"Keywords: {', '.join(keywords)}")

    if isinstance(source, QuestionSource):
        body = "\n".join(f"Question: {q.strip()}" for q in source.questions)
        body += f"\nAnswer: {content.strip()}"
    else:
        body = content.strip()

    return "\n".join(lines) + "\n\n" + body
