"""
NoteApp: Note Service (Persistence Operations)
===============================================

What:  The four note operations (select-all, insert, update, delete) plus
       lookup by id, each run against the request's session.
How:   SQLAlchemy 2.0 async ORM queries; every write commits its own unit
       of work and rolls back on failure.
Who:   Called by the note route handlers.

Error Handling Strategy:
    SQLAlchemy errors never leave this module. They are logged with the
    underlying message and translated into the application's error kinds:

        list_notes / get_note / find_note   → PersistenceReadError
        create_note / update_note / delete_note → PersistenceWriteError
        get_note with a missing id or row   → NotFoundError

    The routes decide whether a kind is redisplayed or escalated.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from noteapp.exceptions import NotFoundError, PersistenceReadError, PersistenceWriteError
from noteapp.models.note import Note
from noteapp.schemas.note import NoteForm

logger = logging.getLogger(__name__)


class NoteService:
    """
    Stateless persistence operations for notes.

    Every method receives the per-request AsyncSession; the service keeps no
    state between calls.
    """

    async def list_notes(self, db: AsyncSession) -> List[Note]:
        """
        Return every stored note in storage order.

        No pagination, filtering or explicit ordering is applied.

        Raises:
            PersistenceReadError: the query failed
        """
        try:
            result = await db.execute(select(Note))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error occurred while fetching notes: %s", str(e))
            raise PersistenceReadError(context={"error_type": type(e).__name__})

    async def find_note(self, db: AsyncSession, note_id: int) -> Optional[Note]:
        """
        Look up a note by primary key.

        Returns:
            The note, or None when no row has this id
        """
        try:
            return await db.get(Note, note_id)
        except SQLAlchemyError as e:
            logger.error("Error occurred while fetching note %s: %s", note_id, str(e))
            raise PersistenceReadError(
                message="Could not load the note. Please try again later.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

    async def get_note(self, db: AsyncSession, note_id: Optional[int]) -> Note:
        """
        Retrieve a note that must exist.

        Raises:
            NotFoundError: note_id is None or no row has this id
            PersistenceReadError: the query failed
        """
        if note_id is None:
            raise NotFoundError(resource="note")

        note = await self.find_note(db, note_id)
        if note is None:
            logger.warning("No note found with ID: %s", note_id)
            raise NotFoundError(resource="note", resource_id=note_id)
        return note

    async def create_note(self, db: AsyncSession, form: NoteForm) -> Note:
        """
        Insert a new note from a validated form.

        The database assigns the id; created_at is filled on insert.

        Raises:
            PersistenceWriteError: insert or commit failed (transaction rolled back)
        """
        note = Note(title=form.title, content=form.content)
        try:
            db.add(note)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Error occurred while creating note: %s", str(e))
            raise PersistenceWriteError(context={"error_type": type(e).__name__})

        logger.info("Note %s created", note.id)
        return note

    async def update_note(self, db: AsyncSession, note_id: int, form: NoteForm) -> Note:
        """
        Replace the title and content of an existing note.

        created_at is left untouched. A row that no longer exists is treated
        as an update conflict rather than a 404: the user keeps the form and
        what they typed.

        Raises:
            PersistenceWriteError: row missing, or the update/commit failed
        """
        try:
            note = await db.get(Note, note_id)
            if note is None:
                logger.error(
                    "Error occurred while updating note: note %s no longer exists", note_id
                )
                raise PersistenceWriteError(
                    message="This note no longer exists. It may have been deleted.",
                    context={"note_id": note_id, "reason": "missing"},
                )
            note.title = form.title
            note.content = form.content
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Error occurred while updating note: %s", str(e))
            raise PersistenceWriteError(
                context={"note_id": note_id, "error_type": type(e).__name__}
            )

        logger.info("Note %s updated", note_id)
        return note

    async def delete_note(self, db: AsyncSession, note_id: int) -> bool:
        """
        Remove a note by id. Deleting an id that is already gone is a no-op.

        Returns:
            True when a row was removed, False when there was nothing to delete

        Raises:
            PersistenceWriteError: lookup, delete or commit failed
        """
        try:
            note = await self.find_note(db, note_id)
        except PersistenceReadError as e:
            raise PersistenceWriteError(
                message="The note could not be deleted. Please try again later.",
                context=e.context,
            ) from e

        if note is None:
            logger.info("Delete requested for missing note %s; nothing to do", note_id)
            return False

        try:
            await db.delete(note)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Error occurred while deleting note: %s", str(e))
            raise PersistenceWriteError(
                message="The note could not be deleted. Please try again later.",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

        logger.info("Note %s deleted", note_id)
        return True


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
