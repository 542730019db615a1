"""
NoteApp: Anti-Forgery Tokens
=============================

What:  Per-session tokens that every state-changing form submission must
       echo back, blocking cross-site request forgery.
How:   A random raw token lives in the signed session cookie. Forms carry a
       copy of it signed and timestamped with itsdangerous, so a token is
       only valid for this session and for CSRF_TIME_LIMIT seconds.
Who:   `csrf_context` feeds templates; `csrf_protect` guards POST routes.

Flow:
    GET  /notes/create  → session["csrf_token"] = <raw>   (created once)
                          form hidden field = sign(<raw>)
    POST /notes/create  → csrf_protect: unsign(field) == session["csrf_token"]
                          mismatch / expired / missing → CSRFError (400)

The token is read from the `csrf_token` form field, or from the
`X-CSRF-Token` header for scripted clients.
"""

import hmac
import logging
import secrets
from typing import Any, Dict, Optional

from fastapi import Request
from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer

from noteapp.config import settings
from noteapp.exceptions import CSRFError

logger = logging.getLogger(__name__)

CSRF_FIELD_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
_SALT = "noteapp-csrf-token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.secret_key, salt=_SALT)


def generate_csrf_token(request: Request) -> str:
    """
    Return a signed anti-forgery token for the current session.

    The raw token is created on first use and reused for the rest of the
    session; the signed value is cached on request.state so every form on a
    page carries the same token.
    """
    cached = getattr(request.state, "csrf_token", None)
    if cached:
        return cached

    session = request.session
    if CSRF_FIELD_NAME not in session:
        session[CSRF_FIELD_NAME] = secrets.token_hex(32)

    token = _serializer().dumps(session[CSRF_FIELD_NAME])
    request.state.csrf_token = token
    return token


def validate_csrf_token(request: Request, token: Optional[str]) -> None:
    """
    Check a submitted token against the session.

    Raises:
        CSRFError: token missing, session has no token, signature invalid,
                   token expired, or token issued for another session
    """
    if not token:
        raise CSRFError(reason="missing")

    raw_session_token = request.session.get(CSRF_FIELD_NAME)
    if not raw_session_token:
        raise CSRFError(reason="session_missing")

    try:
        raw_token = _serializer().loads(token, max_age=settings.csrf_time_limit)
    except SignatureExpired:
        raise CSRFError(reason="expired")
    except BadData:
        raise CSRFError(reason="invalid")

    if not isinstance(raw_token, str) or not hmac.compare_digest(raw_session_token, raw_token):
        raise CSRFError(reason="mismatch")


async def csrf_protect(request: Request) -> None:
    """
    FastAPI dependency for POST routes.

    Runs before the route body, so a rejected request performs no handler
    logic and no database work.
    """
    token = request.headers.get(CSRF_HEADER_NAME)
    if not token:
        form = await request.form()
        value = form.get(CSRF_FIELD_NAME)
        token = value if isinstance(value, str) else None

    try:
        validate_csrf_token(request, token)
    except CSRFError as exc:
        logger.warning(
            "Rejected %s %s: anti-forgery token %s",
            request.method,
            request.url.path,
            exc.reason,
        )
        raise


def csrf_context(request: Request) -> Dict[str, Any]:
    """Template context processor exposing `csrf_token` to every view."""
    # Pages rendered outside SessionMiddleware (unhandled 500s) have no session
    if "session" not in request.scope:
        return {}
    return {"csrf_token": generate_csrf_token(request)}
