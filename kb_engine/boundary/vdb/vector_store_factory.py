"""
Vector store factory for selecting between the SQL and in-memory backends.

Depends on VECTOR_STORE_STORE_TYPE environment variable.
Provides consistent interface regardless of underlying implementation.

Dependencies: kb_engine.boundary.vdb, kb_engine.configs
System role: Vector store instantiation and selection
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kb_engine.boundary.vdb.memory_store import InMemoryVectorStore
from kb_engine.boundary.vdb.sql_store import SQLVectorStore
from kb_engine.boundary.vdb.vector_store import VectorStore
from kb_engine.configs import get_settings

logger = logging.getLogger(__name__)


def get_vector_store(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> VectorStore:
    """
    Factory function to get vector store based on environment configuration.

    Args:
        session_factory: Session factory for the SQL backend

    Returns:
        VectorStore: Configured vector store instance

    Raises:
        ValueError: If the store type is invalid or the SQL backend lacks a session factory
    """
    settings = get_settings()
    store_type = settings.vector_store.store_type.lower()

    if store_type == "memory":
        logger.info(f"{__name__}:get_vector_store - Creating in-memory vector store (local dev mode)")
        return InMemoryVectorStore()

    if store_type == "sql":
        if session_factory is None:
            raise ValueError("The SQL vector store requires a session factory")
        logger.info(f"{__name__}:get_vector_store - Creating SQL vector store")
        return SQLVectorStore(session_factory)

    raise ValueError(
        f"Invalid VECTOR_STORE_STORE_TYPE: {store_type}. Must be 'sql' or 'memory'."
    )
