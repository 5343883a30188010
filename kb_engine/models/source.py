"""
Source document payload schemas.

Tagged union over the known source variants. Each variant carries only
the fields that make sense for it, discriminated by ``type``.

Dependencies: pydantic
System role: Typed source metadata shared by API, services and persistence
"""

import enum
from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter


class SourceType(str, enum.Enum):
    """Kinds of content a knowledge base can hold."""

    FILE = "file"
    LINK = "link"
    TEXT = "text"
    QUESTION = "question"
    PARSED_JOB = "parsed_job"


class FileSource(BaseModel):
    """Text extracted from an uploaded file by a collaborator."""

    type: Literal["file"] = "file"
    file_name: str | None = None
    file_type: str | None = None


class LinkSource(BaseModel):
    """Text scraped from a website."""

    type: Literal["link"] = "link"
    url: str
    routes: list[str] = Field(default_factory=list)


class TextSource(BaseModel):
    """Free text typed by the knowledge base owner."""

    type: Literal["text"] = "text"


class QuestionSource(BaseModel):
    """Question/answer pair; the ingested content is the answer."""

    type: Literal["question"] = "question"
    questions: list[str] = Field(min_length=1)


class ParsedJobSource(BaseModel):
    """Markdown produced by a completed parsing job."""

    type: Literal["parsed_job"] = "parsed_job"
    job_id: UUID
    file_name: str
    mode: str
    pages: int


SourcePayload = Annotated[
    Union[FileSource, LinkSource, TextSource, QuestionSource, ParsedJobSource],
    Field(discriminator="type"),
]

source_payload_adapter: TypeAdapter[SourcePayload] = TypeAdapter(SourcePayload)
