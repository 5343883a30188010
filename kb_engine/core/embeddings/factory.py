"""
Embedding provider factory.

Builds the production provider from settings. The Google client is
imported lazily so test and tooling code can import the package without
API credentials.

Dependencies: kb_engine.configs, langchain_google_genai
System role: Embedding provider instantiation
"""

import logging

from kb_engine.configs import get_settings
from kb_engine.core.embeddings.provider import EmbeddingProvider

logger = logging.getLogger(__name__)


def get_embedding_provider() -> EmbeddingProvider:
    """
    Create the Gemini-backed embedding provider.

    Returns:
        EmbeddingProvider: Provider pinned to the configured model and dimension
    """
    from kb_engine.core.embeddings.embeddings_wrapper import FixedDimensionEmbeddings

    vs = get_settings().vector_store
    logger.info(
        f"{__name__}:get_embedding_provider - Creating provider",
        extra={"model": vs.embedding_model, "dimension": vs.embedding_dimension},
    )
    return EmbeddingProvider(
        embeddings=FixedDimensionEmbeddings(
            model=vs.embedding_model,
            output_dimensionality=vs.embedding_dimension,
        ),
        dimension=vs.embedding_dimension,
        max_attempts=vs.embedding_max_attempts,
        backoff_initial=vs.embedding_backoff_initial,
        backoff_max=vs.embedding_backoff_max,
    )
