"""Translation between the ``students`` table and ``StudentRecord``.

This is the only module that knows Supabase column names.  Both functions
are pure: no I/O, no logging, no mutation of their inputs, and neither
raises for any row-shaped input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from app.models.student import StudentProfileInput, StudentRecord, SupabaseStudent


def _parse_timestamp(raw: datetime | float | str | None) -> datetime | None:
    """Parse a Postgres/ISO-8601 timestamp or epoch seconds, ``None`` when unusable."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    try:
        if isinstance(raw, (int, float)):
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except (ValueError, TypeError, OverflowError, OSError):
        return None


def to_internal(remote: SupabaseStudent | dict[str, Any] | None) -> StudentRecord | None:
    """Map a ``students`` row to a ``StudentRecord``.

    ``None`` maps to ``None`` (the member has no row yet).  Missing optional
    text columns become ``""``; ``profile_picture_url`` and ``unique_code``
    are passed through unchanged, including ``None``.  Columns that are not
    part of the row (``id``, timestamps) map to their empty values.
    """
    if remote is None:
        return None
    if not isinstance(remote, SupabaseStudent):
        try:
            remote = SupabaseStudent.model_validate(remote)
        except ValidationError:
            # only reachable for inputs that are not row-shaped at all
            return None

    return StudentRecord(
        id=remote.id,
        name=remote.name or "",
        email=remote.email or "",
        registration_number=remote.registration_number or "",
        course=remote.course or "",
        graduation_year=remote.graduation_year or "",
        campus=remote.campus or "",
        profile_picture=remote.profile_picture_url,
        unique_code=remote.unique_code,
        created_at=_parse_timestamp(remote.created_at),
        updated_at=_parse_timestamp(remote.updated_at),
    )


def to_remote(fields: StudentProfileInput | StudentRecord) -> dict[str, Any]:
    """Rename profile fields to ``students`` column names.

    Only the client-editable columns are emitted; ``id``, ``unique_code``
    and timestamps are never part of the result.
    """
    return {
        "name": fields.name,
        "email": fields.email,
        "registration_number": fields.registration_number,
        "course": fields.course,
        "graduation_year": fields.graduation_year,
        "campus": fields.campus,
        "profile_picture_url": fields.profile_picture,
    }
