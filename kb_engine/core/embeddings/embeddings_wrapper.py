"""
Google Generative AI embeddings with a fixed output dimensionality.

GoogleGenerativeAIEmbeddings ignores output_dimensionality passed to the
constructor, so this subclass forwards it on every call. Ingestion and
query embeddings therefore always share one dimension.

Dependencies: langchain_google_genai
System role: Production embedding model binding
"""

import logging
from typing import List

from langchain_google_genai import GoogleGenerativeAIEmbeddings

logger = logging.getLogger(__name__)


class FixedDimensionEmbeddings(GoogleGenerativeAIEmbeddings):
    """GoogleGenerativeAIEmbeddings pinned to one output dimensionality."""

    _output_dimensionality: int = 1024

    def __init__(
        self,
        model: str = "models/gemini-embedding-001",
        output_dimensionality: int = 1024,
        **kwargs,
    ) -> None:
        """
        Initialize embeddings with fixed output dimensionality.

        Args:
            model: Google embedding model ID
            output_dimensionality: Dimension used for every embed call
            **kwargs: Additional arguments for GoogleGenerativeAIEmbeddings
        """
        super().__init__(model=model, **kwargs)
        self._output_dimensionality = output_dimensionality
        logger.info(
            f"{__name__}:__init__ - Initialized with model={model}, "
            f"output_dimensionality={output_dimensionality}"
        )

    def embed_documents(
        self,
        texts: List[str],
        *,
        batch_size: int = 100,
        task_type: str | None = None,
        titles: List[str] | None = None,
        output_dimensionality: int | None = None,
    ) -> List[List[float]]:
        """Embed documents as RETRIEVAL_DOCUMENT at the pinned dimension."""
        return super().embed_documents(
            texts,
            batch_size=batch_size,
            task_type=task_type or "RETRIEVAL_DOCUMENT",
            titles=titles,
            output_dimensionality=output_dimensionality or self._output_dimensionality,
        )

    def embed_query(
        self,
        text: str,
        task_type: str | None = None,
        title: str | None = None,
        output_dimensionality: int | None = None,
    ) -> List[float]:
        """Embed a query as RETRIEVAL_QUERY at the pinned dimension."""
        return super().embed_query(
            text,
            task_type=task_type or "RETRIEVAL_QUERY",
            title=title,
            output_dimensionality=output_dimensionality or self._output_dimensionality,
        )
