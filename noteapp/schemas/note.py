"""
NoteApp: Pydantic Form & View Schemas
======================================

What:  Pydantic models for the submitted note forms and the small view
       models handed to templates.
How:   Field validators enforce the required / max-length rules with the
       configured bounds and fixed, per-field messages.
Who:   Used by the note routes to validate submissions before any write.

Validation rules:
    title    required (non-blank), at most NOTE_TITLE_MAX_LENGTH characters
    content  required (non-blank), at most NOTE_CONTENT_MAX_LENGTH characters

    Messages:
        "Title is required."        "Title cannot exceed 10 characters."
        "Content is required."      "Content cannot exceed 500 characters."
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from noteapp.config import settings
from noteapp.exceptions import FormValidationError


# Plain ASCII digits: no sign, padding or underscores
_DIGITS_RE = re.compile(r"[0-9]+")


def _check_text(value: str, label: str, max_length: int) -> str:
    if not value or not value.strip():
        raise PydanticCustomError(
            "required",
            "{label} is required.",
            {"label": label},
        )
    if len(value) > max_length:
        raise PydanticCustomError(
            "too_long",
            "{label} cannot exceed {max_length} characters.",
            {"label": label, "max_length": max_length},
        )
    return value


def _parse_id(value: Any) -> Optional[int]:
    """Form ids arrive as strings; anything but plain digits is absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value)
    if not _DIGITS_RE.fullmatch(text):
        return None
    return int(text)


# ══════════════════════════════════════════════════════════════════════════
# Form Models
# ══════════════════════════════════════════════════════════════════════════


class NoteForm(BaseModel):
    """
    What:  A Create submission (title and content only).
    Why:   Client-supplied ids are never part of a new note.

    Usage:
        form = NoteForm.parse_submission(title=title, content=content)
        # raises FormValidationError with field → messages on failure
    """
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note body")

    # An omitted field is still checked against the required rule
    model_config = {"validate_default": True}

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_text(v, "Title", settings.note_title_max_length)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _check_text(v, "Content", settings.note_content_max_length)

    @classmethod
    def parse_submission(cls, **values: Any) -> "NoteForm":
        """
        Validate submitted values.

        Raises:
            FormValidationError: `errors` maps each failing field to its messages
        """
        try:
            return cls(**values)
        except ValidationError as exc:
            errors: Dict[str, List[str]] = {}
            for err in exc.errors():
                field = str(err["loc"][0]) if err["loc"] else "__all__"
                errors.setdefault(field, []).append(err["msg"])
            raise FormValidationError(errors=errors) from exc

    @classmethod
    def as_submitted(cls, **values: Any) -> "NoteForm":
        """Build the form without validation, for redisplaying what was typed."""
        return cls.model_construct(**values)


class NoteEditForm(NoteForm):
    """
    What:  An Edit submission; carries the id embedded in the form.

    The route compares `id` with the id in the URL before validating the
    rest. A missing or non-numeric id is None, which never matches.
    """
    id: Optional[int] = Field(default=None, description="Id of the note being edited")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[int]:
        return _parse_id(v)

    @classmethod
    def as_submitted(cls, **values: Any) -> "NoteEditForm":
        if "id" in values:
            values["id"] = _parse_id(values["id"])
        return cls.model_construct(**values)


# ══════════════════════════════════════════════════════════════════════════
# View Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorView(BaseModel):
    """
    What:  Data for the generic error page.
    Who:   Rendered when listing or deleting fails.

    request_id is the active trace id (W3C traceparent) or, failing that,
    the per-request id, so an operator can find the matching log lines.
    """
    request_id: Optional[str] = Field(default=None, description="Correlation id")

    @property
    def show_request_id(self) -> bool:
        return bool(self.request_id)


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
