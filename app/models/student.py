"""Pydantic models for the ``students`` table and the internal record.

``SupabaseStudent`` mirrors the table columns exactly and is the only shape
that crosses the Supabase boundary.  ``StudentRecord`` is the internal
shape held by the profile store.  ``app.services.record_mapper`` is the
single translation seam between the two.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SupabaseStudent(BaseModel):
    """Row of the ``students`` table as returned by Supabase.

    Every column is optional and leniently coerced so that any row shape
    can be mapped; ``SyncEngine`` rejects rows without an ``id``.
    """
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str = ""
    name: str | None = None
    email: str | None = None
    registration_number: str | None = None
    course: str | None = None
    graduation_year: str | None = None
    campus: str | None = None
    profile_picture_url: str | None = None
    unique_code: str | None = None
    created_at: datetime | float | str | None = None
    updated_at: datetime | float | str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator(
        "name",
        "email",
        "registration_number",
        "course",
        "graduation_year",
        "campus",
        "profile_picture_url",
        "unique_code",
        mode="before",
    )
    @classmethod
    def _coerce_to_str(cls, value: object) -> object:
        # uuid / integer columns come back as non-strings from some clients
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _keep_known_timestamp_types(cls, value: object) -> object:
        if value is None or isinstance(value, (datetime, int, float, str)):
            return value
        return None


class StudentRecord(BaseModel):
    """Authoritative per-member profile held in memory."""

    id: str
    name: str
    email: str
    registration_number: str = ""
    course: str = ""
    graduation_year: str = ""
    campus: str = ""
    profile_picture: str | None = None
    unique_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StudentProfileInput(BaseModel):
    """Fields a member submits from the profile form.

    Excludes ``id``, timestamps and ``unique_code``, which are never
    client-editable.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    registration_number: str = ""
    course: str = ""
    graduation_year: str = ""
    campus: str = ""
    profile_picture: str | None = None


class IdCard(BaseModel):
    """Data the ID-card renderer needs to draw a member's card."""

    unique_code: str
    name: str
    course: str = ""
    campus: str = ""
    registration_number: str = ""
    graduation_year: str = ""
    profile_picture: str | None = None
