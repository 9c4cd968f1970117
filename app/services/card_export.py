"""ID-card export helpers.

The card is addressed by the member's ``unique_code``.  Nothing here
generates a code: a member without one must submit the profile first.
"""

from __future__ import annotations

from app.core.exceptions import PreconditionError
from app.models.student import IdCard, StudentRecord
from app.services.profile_store import ProfileStore


def _require_coded_record(store: ProfileStore) -> StudentRecord:
    record = store.current_record
    if record is None:
        raise PreconditionError("No student record loaded for this session")
    if not record.unique_code:
        raise PreconditionError(
            f"Student {record.id} has no membership code yet; submit the profile first"
        )
    return record


def resolve_card_identifier(store: ProfileStore) -> str:
    """Return the stored membership code used to address the ID card."""
    return _require_coded_record(store).unique_code  # type: ignore[return-value]


def build_id_card(store: ProfileStore) -> IdCard:
    """Collect the fields and asset URL the ID-card renderer draws."""
    record = _require_coded_record(store)
    return IdCard(
        unique_code=record.unique_code,  # type: ignore[arg-type]
        name=record.name,
        course=record.course,
        campus=record.campus,
        registration_number=record.registration_number,
        graduation_year=record.graduation_year,
        profile_picture=record.profile_picture,
    )
