"""
NoteApp: Exception Hierarchy
=============================

What:  The closed set of error kinds the application distinguishes.
How:   Each exception class carries a user-safe message and an optional
       context dict that is logged server-side but never rendered.
Who:   Raised by services and the anti-forgery check; routes and the global
       handlers in main.py decide how each kind is presented.

Exception Hierarchy:
    NoteAppError (base)
    ├── NotFoundError           → 404 page
    ├── FormValidationError     → form redisplayed with field errors, no write
    ├── PersistenceReadError    → error page with trace id
    ├── PersistenceWriteError   → Create/Edit: form redisplayed
    │                             Delete: error page with trace id
    └── CSRFError               → 400 page, handler never runs
"""

from typing import Any, Dict, List, Optional


class NoteAppError(Exception):
    """
    Base exception for all NoteApp errors.

    Attributes:
        message:  User-facing error description (safe to render)
        context:  Additional debug info (logged but NOT rendered)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(NoteAppError):
    """
    Raised when the requested id is missing or does not resolve to a record.

    Terminal for the request: rendered as a 404 page, never retried.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FormValidationError(NoteAppError):
    """
    Raised when a submitted form breaks a required or length rule.

    Attributes:
        errors: field name → list of messages, rendered next to each input
    """

    def __init__(
        self,
        errors: Dict[str, List[str]],
        message: str = "Please correct the highlighted fields.",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["fields"] = sorted(errors)
        super().__init__(message=message, context=ctx)
        self.errors = errors


class PersistenceReadError(NoteAppError):
    """Raised when loading notes from the database fails."""

    def __init__(
        self,
        message: str = "Could not load notes. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PersistenceWriteError(NoteAppError):
    """
    Raised when an insert, update or delete could not be saved.

    Covers database failures and update conflicts (the row disappeared
    between the form being rendered and submitted). The underlying error
    text goes into `context`, never into `message`.
    """

    def __init__(
        self,
        message: str = "Your changes could not be saved. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CSRFError(NoteAppError):
    """
    Raised when a state-changing request lacks a valid anti-forgery token.

    HTTP: 400 Bad Request, raised from a route dependency so no handler
    logic runs.
    """

    def __init__(
        self,
        message: str = "The form has expired or is invalid. Please reload the page and try again.",
        reason: str = "invalid",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason
