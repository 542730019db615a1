"""
NoteApp: View Rendering
========================

What:  The Jinja2 template environment and the shared error/not-found pages.
How:   Starlette's Jinja2Templates with a context processor that injects the
       anti-forgery token into every view.
Who:   Used by the note routes and by the global exception handlers.
"""

from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from noteapp.middleware.request_id import request_id_var, trace_id_var
from noteapp.schemas.note import ErrorView
from noteapp.security.csrf import csrf_context

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(
    directory=str(TEMPLATES_DIR),
    context_processors=[csrf_context],
)


def current_trace_id(request: Request) -> str:
    """Active trace id, falling back to the request id."""
    return (
        getattr(request.state, "trace_id", "")
        or trace_id_var.get("")
        or getattr(request.state, "request_id", "")
        or request_id_var.get("")
    )


def render_error(request: Request, status_code: int = 200) -> Response:
    """Generic error page carrying the correlation id, never the exception text."""
    return templates.TemplateResponse(
        request,
        "error.html",
        {"error": ErrorView(request_id=current_trace_id(request) or None)},
        status_code=status_code,
    )


def render_not_found(request: Request, message: Optional[str] = None) -> Response:
    return templates.TemplateResponse(
        request,
        "not_found.html",
        {"message": message or "The page you requested could not be found."},
        status_code=404,
    )


def render_bad_request(request: Request, message: str) -> Response:
    return templates.TemplateResponse(
        request,
        "bad_request.html",
        {"message": message},
        status_code=400,
    )
