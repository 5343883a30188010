"""
Test suite for EmbeddingProvider.

Covers retry on transient provider errors, dimension enforcement and
query/document parity.

System role: Verification of the embedding adapter
"""

from unittest.mock import MagicMock

import pytest

from kb_engine.core.embeddings.provider import EmbeddingProvider
from kb_engine.core.exceptions import EmbeddingDimensionError, EmbeddingError
from tests.fakes import DIMENSION, HashingEmbeddings


def make_provider(embeddings, dimension: int = DIMENSION, attempts: int = 3) -> EmbeddingProvider:
    return EmbeddingProvider(
        embeddings,
        dimension=dimension,
        max_attempts=attempts,
        backoff_initial=0.0,
        backoff_max=0.0,
    )


class TestEmbeddingProviderEmbedDocuments:
    """Test suite for EmbeddingProvider.embed_documents()."""

    @pytest.mark.asyncio
    async def test_embed_documents_should_return_one_vector_per_text(self) -> None:
        # Arrange
        provider = make_provider(HashingEmbeddings())

        # Act
        vectors = await provider.embed_documents(["alpha beta", "gamma"])

        # Assert
        assert len(vectors) == 2
        assert all(len(v) == DIMENSION for v in vectors)

    @pytest.mark.asyncio
    async def test_embed_documents_should_skip_provider_for_empty_input(self) -> None:
        # Arrange
        embeddings = MagicMock()
        provider = make_provider(embeddings)

        # Act
        result = await provider.embed_documents([])

        # Assert
        assert result == []
        embeddings.embed_documents.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_documents_should_retry_transient_errors(self) -> None:
        """Test two failures followed by success returns the vectors."""
        # Arrange
        embeddings = MagicMock()
        embeddings.embed_documents.side_effect = [
            RuntimeError("429"),
            RuntimeError("503"),
            [[1.0] * DIMENSION],
        ]
        provider = make_provider(embeddings, attempts=3)

        # Act
        vectors = await provider.embed_documents(["text"])

        # Assert
        assert vectors == [[1.0] * DIMENSION]
        assert embeddings.embed_documents.call_count == 3

    @pytest.mark.asyncio
    async def test_embed_documents_should_raise_embedding_error_after_retries(self) -> None:
        # Arrange
        embeddings = MagicMock()
        embeddings.embed_documents.side_effect = RuntimeError("down")
        provider = make_provider(embeddings, attempts=2)

        # Act / Assert
        with pytest.raises(EmbeddingError):
            await provider.embed_documents(["text"])
        assert embeddings.embed_documents.call_count == 2

    @pytest.mark.asyncio
    async def test_embed_documents_should_reject_wrong_dimension_without_retry(self) -> None:
        """Test a dimension mismatch is fatal and not retried."""
        # Arrange
        embeddings = MagicMock()
        embeddings.embed_documents.return_value = [[0.5] * (DIMENSION // 2)]
        provider = make_provider(embeddings, attempts=3)

        # Act / Assert
        with pytest.raises(EmbeddingDimensionError):
            await provider.embed_documents(["text"])
        assert embeddings.embed_documents.call_count == 1


class TestEmbeddingProviderEmbedQuery:
    """Test suite for EmbeddingProvider.embed_query()."""

    @pytest.mark.asyncio
    async def test_embed_query_should_match_document_embedding_space(self) -> None:
        """Test query and document vectors share model and dimension."""
        # Arrange
        provider = make_provider(HashingEmbeddings())

        # Act
        query_vector = await provider.embed_query("refund policy")
        doc_vector = await provider.embed("refund policy")

        # Assert
        assert len(query_vector) == DIMENSION
        assert query_vector == doc_vector

    @pytest.mark.asyncio
    async def test_embed_query_should_raise_on_wrong_dimension(self) -> None:
        # Arrange
        embeddings = MagicMock()
        embeddings.embed_query.return_value = [1.0, 2.0]
        provider = make_provider(embeddings)

        # Act / Assert
        with pytest.raises(EmbeddingDimensionError):
            await provider.embed_query("hello")
