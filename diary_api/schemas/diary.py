"""
Diary API — Pydantic Request/Response Schemas
===============================================

What:  The API contract: form models for registration, update and search,
       the diary response body, and the error/health envelopes.
How:   Route dependencies build the form models from multipart fields; a
       pydantic ValidationError is turned into a 400 with one message per
       field (see `field_errors`).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field, field_validator

from diary_api.models.diary import CONTENT_MAX_LENGTH, TITLE_MAX_LENGTH

SEARCH_TITLE_MAX_LENGTH = 100


def is_blank(value: Optional[str]) -> bool:
    """True for None, the empty string and whitespace-only strings."""
    return value is None or not value.strip()


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class DiaryRegistrationForm(BaseModel):
    """Fields of POST /api/diary. Both are required and must not be blank."""

    title: str = Field(max_length=TITLE_MAX_LENGTH)
    content: str = Field(max_length=CONTENT_MAX_LENGTH)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if is_blank(v):
            raise ValueError("must not be blank")
        return v


class DiaryUpdateForm(BaseModel):
    """
    Fields of PUT /api/diary/{id}.

    Omitted or blank fields mean "leave unchanged"; only the length limits
    are enforced here.
    """

    title: Optional[str] = Field(default=None, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = Field(default=None, max_length=CONTENT_MAX_LENGTH)


class DiarySearchParams(BaseModel):
    """Query string of GET /api/diary."""

    title: Optional[str] = Field(default=None, max_length=SEARCH_TITLE_MAX_LENGTH)


def field_errors(errors: Iterable[Dict[str, Any]]) -> Dict[str, str]:
    """
    Collapse pydantic/FastAPI error dicts into {field name: message}.

    The field name is the last string component of each error's `loc`
    (so ("body", "title") and ("title",) both become "title"). The first
    message per field wins.
    """
    fields: Dict[str, str] = {}
    for error in errors:
        names = [part for part in error.get("loc", ()) if isinstance(part, str)]
        name = names[-1] if names else "request"
        message = str(error.get("msg", "invalid value"))
        # pydantic prefixes messages raised from validators
        message = message.removeprefix("Value error, ")
        fields.setdefault(name, message)
    return fields


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class DiaryResponse(BaseModel):
    """A diary entry as returned by every diary endpoint."""

    id: int = Field(description="Diary entry identifier")
    title: str = Field(description="Entry title")
    content: str = Field(description="Entry body")
    image_path: Optional[str] = Field(
        default=None,
        description="File name of the attached image (null when there is none)",
    )
    created_at: datetime = Field(description="When the entry was created (UTC)")
    updated_at: datetime = Field(description="When the entry was last changed (UTC)")

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive values for timezone-aware columns
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "diary with ID '42' was not found",
            "details": {"resource": "diary", "resource_id": "42"},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error kind")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Service and dependency status for GET /health."""

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    image_storage: str = Field(description="Image root state: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")


