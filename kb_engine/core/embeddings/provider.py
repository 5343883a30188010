"""
Embedding provider adapter.

Wraps any LangChain ``Embeddings`` implementation behind an async
interface with bounded retries and a dimensionality guard. Transient
provider failures are retried with exponential backoff and then surface
as EmbeddingError; a vector of the wrong length is a configuration error
(EmbeddingDimensionError) and is never retried.

Dependencies: langchain_core, tenacity, fastapi.concurrency
System role: Text to vector conversion for ingestion and queries
"""

import logging
from typing import Callable, TypeVar

from fastapi.concurrency import run_in_threadpool
from langchain_core.embeddings import Embeddings
from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from kb_engine.core.exceptions import EmbeddingDimensionError, EmbeddingError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EmbeddingProvider:
    """
    Async embedding adapter with retry and dimension checks.

    Ingestion and queries must go through the same instance so both use
    the same model and dimensionality.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        dimension: int,
        max_attempts: int = 4,
        backoff_initial: float = 1.0,
        backoff_max: float = 20.0,
    ) -> None:
        """
        Initialize provider.

        Args:
            embeddings: LangChain embeddings model
            dimension: Expected vector length
            max_attempts: Attempts per call before giving up
            backoff_initial: First retry delay in seconds
            backoff_max: Largest retry delay in seconds
        """
        self._embeddings = embeddings
        self.dimension = dimension
        self._max_attempts = max_attempts
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max

    async def _call_with_retry(self, operation: str, fn: Callable[..., T], *args) -> T:
        retrying = AsyncRetrying(
            retry=retry_if_not_exception_type(EmbeddingDimensionError),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(
                initial=self._backoff_initial,
                max=self._backoff_max,
                jitter=self._backoff_initial,
            ),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:{operation} - Retry {retry_state.attempt_number}/"
                f"{self._max_attempts} after provider error"
            ),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await run_in_threadpool(fn, *args)
        except EmbeddingDimensionError:
            raise
        except Exception as e:
            logger.error(
                f"{__name__}:{operation} - Embedding failed after retries",
                extra={"error": str(e), "attempts": self._max_attempts},
            )
            raise EmbeddingError(
                f"Embedding provider failed: {e}",
                {"operation": operation, "attempts": self._max_attempts},
            ) from e
        raise EmbeddingError("Embedding provider returned no result", {"operation": operation})

    def _check_dimension(self, vector: list[float]) -> list[float]:
        if len(vector) != self.dimension:
            raise EmbeddingDimensionError(expected=self.dimension, actual=len(vector))
        return [float(v) for v in vector]

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """
        Embed a batch of texts in one provider call.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per text, in order

        Raises:
            EmbeddingError: When the provider fails after retries
            EmbeddingDimensionError: When a vector has the wrong length
        """
        if not texts:
            return []
        vectors = await self._call_with_retry(
            "embed_documents", self._embeddings.embed_documents, texts
        )
        if len(vectors) != len(texts):
            raise EmbeddingError(
                "Embedding provider returned a different number of vectors",
                {"expected": len(texts), "actual": len(vectors)},
            )
        return [self._check_dimension(v) for v in vectors]

    async def embed(self, text: str) -> list[float]:
        """Embed a single document text."""
        return (await self.embed_documents([text]))[0]

    async def embed_query(self, text: str) -> list[float]:
        """
        Embed a query with the ingestion model and dimension.

        Raises:
            EmbeddingError: When the provider fails after retries
            EmbeddingDimensionError: When the vector has the wrong length
        """
        vector = await self._call_with_retry("embed_query", self._embeddings.embed_query, text)
        return self._check_dimension(vector)
