"""
Knowledge base ORM model.

The deduplication and search scope. The record itself is owned by the
chatbot management collaborator; this service reads its owner and keeps
the cumulative content size counter used for plan limit checks.

Dependencies: sqlalchemy, kb_engine.boundary.db.base
System role: Ownership and size accounting for a knowledge base
"""

from sqlalchemy import BigInteger, CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from kb_engine.boundary.db.base import Base, TimestampMixin, UUIDMixin


class KnowledgeBaseModel(Base, UUIDMixin, TimestampMixin):
    """
    Knowledge base owned by one account.

    Attributes:
        id: UUID primary key
        account_id: Owning account (credit ledger key)
        name: Display name
        content_size_bytes: Sum of submitted source document sizes
    """

    __tablename__ = "knowledge_bases"
    __table_args__ = (
        CheckConstraint("content_size_bytes >= 0", name="ck_knowledge_bases_size_non_negative"),
    )

    account_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    content_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
