"""
NoteApp: Note SQLAlchemy Model
===============================

What:  ORM model representing the `notes` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - id: integer primary key assigned by the database on insert
    - title / content: validated by NoteForm before any write; the column
      sizes are storage limits, the configured bounds are enforced in the form
    - created_at: UTC, assigned once when the row is first inserted and never
      touched by updates
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from noteapp.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A titled text snippet with a creation timestamp.

    Lifecycle:
        1. Created from a valid Create submission (id and created_at assigned)
        2. Title and content replaced by an Edit whose ids match
        3. Removed by a confirmed Delete
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Python-side default fills the attribute on flush; the server default
    # covers rows inserted outside the ORM
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        """Developer-friendly string representation for debugging."""
        return f"<Note(id={self.id}, title='{self.title}', created_at='{self.created_at}')>"
