"""SQLAlchemy models for the document-store backend.

Each row keeps the full document layout (``metadata``, ``relations`` and
``privacy`` as JSON) plus a few shadow columns mirrored from it for
filtering and ordering.
"""

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text
from sqlalchemy.types import JSON
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all storage models."""

    pass


class MemoryDocument(Base):
    """Memories collection."""

    __tablename__ = "memories"

    id = Column(String(64), primary_key=True)
    type = Column(String(20), nullable=False, index=True)
    category = Column(String(30), nullable=False, index=True)
    content = Column(Text, nullable=False)
    meta = Column("metadata", JSON, nullable=False, default=dict)  # DB column "metadata"
    relations = Column(JSON, nullable=True)
    privacy = Column(JSON, nullable=False, default=dict)

    # Shadow columns
    created_at = Column(DateTime, nullable=False, index=True)
    context_id = Column(String(64), nullable=True, index=True)
    tag_index = Column(Text, nullable=False, default="\n")  # "\n" + "\n".join(tags) + "\n"
    search_text = Column(Text, nullable=False, default="")  # str.lower() of searchable fields

    __table_args__ = (Index("ix_memories_category_type", "category", "type"),)


class ContextDocument(Base):
    """Contexts collection."""

    __tablename__ = "contexts"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    memory_ids = Column(JSON, nullable=False, default=list)
    meta = Column("metadata", JSON, nullable=False, default=dict)

    # Shadow columns
    created_at = Column(DateTime, nullable=False)
    active = Column(Boolean, nullable=False, default=False, index=True)
