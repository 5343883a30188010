"""
Exception hierarchy for the knowledge engine.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class KnowledgeEngineException(Exception):
    """Base exception for all knowledge engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(KnowledgeEngineException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class NotFoundError(KnowledgeEngineException):
    """Raised when a requested entity does not exist."""


class KnowledgeBaseNotFoundError(NotFoundError):
    """Raised when a knowledge base cannot be found."""

    def __init__(self, knowledge_base_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["knowledge_base_id"] = knowledge_base_id
        super().__init__(f"Knowledge base not found: {knowledge_base_id}", details)


class SourceDocumentNotFoundError(NotFoundError):
    """Raised when a source document cannot be found."""

    def __init__(self, source_document_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["source_document_id"] = source_document_id
        super().__init__(f"Source document not found: {source_document_id}", details)


class ParsingJobNotFoundError(NotFoundError):
    """Raised when a parsing job cannot be found."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["job_id"] = job_id
        super().__init__(f"Parsing job not found: {job_id}", details)


class KnowledgeBaseAccessError(KnowledgeEngineException):
    """Raised when an account operates on a knowledge base it does not own."""

    def __init__(self, knowledge_base_id: str, account_id: str) -> None:
        super().__init__(
            "Access to knowledge base denied",
            {"knowledge_base_id": knowledge_base_id, "account_id": account_id},
        )


class InsufficientCreditsError(KnowledgeEngineException):
    """Raised when an account balance cannot cover an operation."""

    def __init__(self, account_id: str, required: int, available: int) -> None:
        """
        Initialize insufficient credits error.

        Args:
            account_id: Account whose balance was checked
            required: Credits the operation needs
            available: Credits currently on the account
        """
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient credits: {required} required, {available} available",
            {"account_id": account_id, "required": required, "available": available},
        )


class PlanLimitExceededError(KnowledgeEngineException):
    """Raised when new content would push a knowledge base past its plan size limit."""

    def __init__(self, current_bytes: int, attempted_bytes: int, limit_bytes: int) -> None:
        """
        Initialize plan limit error.

        Args:
            current_bytes: Content size already stored
            attempted_bytes: Size of the content being added
            limit_bytes: Maximum allowed by the plan
        """
        self.current_bytes = current_bytes
        self.attempted_bytes = attempted_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"Context size limit exceeded: using {round(current_bytes / 1024)} KB "
            f"of {round(limit_bytes / 1024)} KB, cannot add {round(attempted_bytes / 1024)} KB",
            {
                "current_bytes": current_bytes,
                "attempted_bytes": attempted_bytes,
                "limit_bytes": limit_bytes,
            },
        )


class EmbeddingError(KnowledgeEngineException):
    """Raised when embedding generation fails after retries."""


class EmbeddingDimensionError(KnowledgeEngineException):
    """Raised when vector dimensionality disagrees with the configured index dimension."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}",
            {"expected": expected, "actual": actual},
        )


class VectorStoreError(KnowledgeEngineException):
    """Raised when vector store operations fail."""


class ObjectStorageError(KnowledgeEngineException):
    """Raised when raw file storage operations fail."""


class QueueError(KnowledgeEngineException):
    """Raised when a job cannot be handed to the background worker queue."""


class ParsingError(KnowledgeEngineException):
    """Raised when document parsing fails."""


class SynthesisError(KnowledgeEngineException):
    """Raised when answer synthesis fails."""


class InvalidJobTransitionError(KnowledgeEngineException):
    """Raised when a parsing job status change would move backwards or leave a terminal state."""


class CreditLedgerError(KnowledgeEngineException):
    """Raised when the credit ledger cannot complete an operation."""
