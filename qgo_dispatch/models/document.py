"""
Document model backing the SQL document store.

Every remote collection (drivers, jobs, receipts) lives in the same table;
the record itself is stored as JSON under ``data``.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from qgo_dispatch.db.database import Base


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )


class StoredDocument(Base, TimestampMixin):
    """
    One document of one collection.

    Attributes:
        collection: Collection name ("drivers", "jobs", "receipts")
        id: Document id, unique within the collection
        data: Document fields (camelCase, without the id)
    """
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )

    data: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    def to_record(self) -> dict[str, Any]:
        """Document fields with the id folded in."""
        return {**self.data, "id": self.id}

    def __repr__(self) -> str:
        return f"<StoredDocument(collection={self.collection!r}, id={self.id!r})>"
