"""
NoteApp: Notes Route Handlers
==============================

What:  The HTML note routes: list, create, edit and delete.
How:   Each handler pairs one NoteService call with a template render or a
       redirect back to the list.
Who:   Browsers submitting the server-rendered forms.

Routes:
    GET  /                        list all notes (also GET /notes)
    GET  /notes/create            empty create form
    POST /notes/create            create, then 302 → /
    GET  /notes/edit/{id}         edit form for an existing note
    POST /notes/edit/{id}         update, then 302 → /
    GET  /notes/delete/{id}       delete confirmation
    POST /notes/delete/{id}       delete, then 302 → /

Failure policy:
    ┌──────────────┬──────────────────────────────────────────────────────┐
    │ List         │ read failure → error page with trace id              │
    │ Create/Edit  │ invalid form → form redisplayed with field errors    │
    │              │ write failure → logged, form redisplayed             │
    │ Edit/Delete  │ missing id, unknown id, id mismatch → 404            │
    │ Delete       │ write failure → error page with trace id             │
    │ Every POST   │ bad anti-forgery token → 400, handler never runs     │
    └──────────────┴──────────────────────────────────────────────────────┘
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Form, Path, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from noteapp.config import settings
from noteapp.database import get_db_session
from noteapp.exceptions import (
    FormValidationError,
    NotFoundError,
    PersistenceReadError,
    PersistenceWriteError,
)
from noteapp.models.note import Note
from noteapp.schemas.note import NoteEditForm, NoteForm
from noteapp.security.csrf import csrf_protect
from noteapp.services.note_service import note_service
from noteapp.views import render_error, templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])

# Key for messages that belong to the whole form rather than one field
FORM_ERRORS_KEY = "__all__"

# Largest id the INTEGER primary key can hold
MAX_NOTE_ID = 2**31 - 1


def _redirect_to_list(request: Request) -> RedirectResponse:
    """Post/redirect/get: refreshing the list never resubmits the form."""
    return RedirectResponse(url=request.app.url_path_for("list_notes"), status_code=302)


def _render_form(
    request: Request,
    template: str,
    form: NoteForm,
    errors: Optional[Dict[str, List[str]]] = None,
    note: Optional[Note] = None,
) -> Response:
    context: Dict[str, Any] = {
        "form": form,
        "errors": errors or {},
        "form_errors": (errors or {}).get(FORM_ERRORS_KEY, []),
        "note": note,
        "title_max_length": settings.note_title_max_length,
        "content_max_length": settings.note_content_max_length,
    }
    return templates.TemplateResponse(request, template, context)


# ── List ──────────────────────────────────────────────────────────────────

@router.get("/", name="list_notes", response_class=HTMLResponse)
@router.get("/notes", name="notes_index", response_class=HTMLResponse)
async def list_notes(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Show every stored note.

    A read failure replaces the whole list with the error page; no partial
    results are shown.
    """
    try:
        notes = await note_service.list_notes(db)
    except PersistenceReadError:
        return render_error(request)

    return templates.TemplateResponse(request, "notes/index.html", {"notes": notes})


# ── Create ────────────────────────────────────────────────────────────────

@router.get("/notes/create", name="create_note_form", response_class=HTMLResponse)
async def create_note_form(request: Request) -> Response:
    return _render_form(request, "notes/create.html", NoteForm.as_submitted(title="", content=""))


@router.post(
    "/notes/create",
    name="create_note",
    response_class=HTMLResponse,
    dependencies=[Depends(csrf_protect)],
)
async def create_note(
    request: Request,
    title: str = Form(default=""),
    content: str = Form(default=""),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Validate and insert a new note.

    Any `id` field in the submission is ignored; the database assigns it.
    """
    submitted = NoteForm.as_submitted(title=title, content=content)

    try:
        form = NoteForm.parse_submission(title=title, content=content)
    except FormValidationError as exc:
        return _render_form(request, "notes/create.html", submitted, exc.errors)

    try:
        await note_service.create_note(db, form)
    except PersistenceWriteError as exc:
        return _render_form(
            request, "notes/create.html", submitted, {FORM_ERRORS_KEY: [exc.message]}
        )

    return _redirect_to_list(request)


# ── Edit ──────────────────────────────────────────────────────────────────

@router.get("/notes/edit", name="edit_note_form_missing_id", response_class=HTMLResponse)
async def edit_note_form_missing_id(request: Request) -> Response:
    logger.warning("Edit action was called with null ID.")
    raise NotFoundError(resource="note")


@router.get("/notes/edit/{note_id}", name="edit_note_form", response_class=HTMLResponse)
async def edit_note_form(
    request: Request,
    note_id: int = Path(..., ge=1, le=MAX_NOTE_ID, description="Note primary key"),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """Edit form pre-populated with the stored note; 404 if the id is unknown."""
    note = await note_service.get_note(db, note_id)
    form = NoteEditForm.as_submitted(id=note.id, title=note.title, content=note.content)
    return _render_form(request, "notes/edit.html", form, note=note)


@router.post(
    "/notes/edit/{note_id}",
    name="edit_note",
    response_class=HTMLResponse,
    dependencies=[Depends(csrf_protect)],
)
async def edit_note(
    request: Request,
    note_id: int = Path(..., ge=1, le=MAX_NOTE_ID, description="Note primary key"),
    payload_id: str = Form(default="", alias="id"),
    title: str = Form(default=""),
    content: str = Form(default=""),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Validate and save an edit.

    The id in the URL must equal the id carried by the form; a form edited
    to point at another record is answered with 404 and nothing is written.
    """
    submitted = NoteEditForm.as_submitted(id=payload_id, title=title, content=content)

    if submitted.id != note_id:
        logger.warning("Note ID mismatch in Edit action: route %s, form %r", note_id, payload_id)
        raise NotFoundError(resource="note", resource_id=note_id)

    try:
        form = NoteEditForm.parse_submission(id=payload_id, title=title, content=content)
    except FormValidationError as exc:
        return _render_form(request, "notes/edit.html", submitted, exc.errors)

    try:
        await note_service.update_note(db, note_id, form)
    except PersistenceWriteError as exc:
        return _render_form(
            request, "notes/edit.html", submitted, {FORM_ERRORS_KEY: [exc.message]}
        )

    return _redirect_to_list(request)


# ── Delete ────────────────────────────────────────────────────────────────

@router.get("/notes/delete", name="delete_note_confirm_missing_id", response_class=HTMLResponse)
async def delete_note_confirm_missing_id(request: Request) -> Response:
    logger.warning("Delete action was called with null ID.")
    raise NotFoundError(resource="note")


@router.get("/notes/delete/{note_id}", name="delete_note_confirm", response_class=HTMLResponse)
async def delete_note_confirm(
    request: Request,
    note_id: int = Path(..., ge=1, le=MAX_NOTE_ID, description="Note primary key"),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """Confirmation page showing the note about to be removed."""
    note = await note_service.get_note(db, note_id)
    return templates.TemplateResponse(request, "notes/delete.html", {"note": note})


@router.post(
    "/notes/delete/{note_id}",
    name="delete_note",
    response_class=HTMLResponse,
    dependencies=[Depends(csrf_protect)],
)
async def delete_note(
    request: Request,
    note_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Remove the note and return to the list.

    A note that is already gone still redirects, as does an id no row can
    have; a failed delete shows the error page with the trace id.
    """
    if not 1 <= note_id <= MAX_NOTE_ID:
        logger.info("Delete requested for out-of-range note id %s; nothing to do", note_id)
        return _redirect_to_list(request)

    try:
        await note_service.delete_note(db, note_id)
    except PersistenceWriteError:
        return render_error(request)

    return _redirect_to_list(request)
