"""Member profile endpoints.

The authentication provider sits in front of this service and forwards the
member identity in the ``X-User-Id`` header.  ``POST /session`` and
``DELETE /session`` are the login/logout hooks; the remaining endpoints
operate on the caller's open session.

Error mapping:
    no session                  -> 401
    operation already in flight -> 409
    missing prior state         -> 409
    invalid fields              -> 422
    Supabase failure            -> 503
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Request, UploadFile

from app.core.exceptions import (
    PreconditionError,
    ProfileError,
    ProfileValidationError,
    StoreBusyError,
    TransientStoreError,
)
from app.models.document import FileUpload
from app.models.enums import DocumentType
from app.models.student import StudentProfileInput
from app.services.notifications import QueueNotifier
from app.services.session import SessionContext, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def _http_error(exc: ProfileError) -> HTTPException:
    """Translate a profile error into the matching HTTP error."""
    if isinstance(exc, StoreBusyError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, PreconditionError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ProfileValidationError):
        return HTTPException(status_code=422, detail=exc.errors or str(exc))
    if isinstance(exc, TransientStoreError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def get_session(
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> SessionContext:
    """Resolve the caller's open session or fail with 401."""
    try:
        return _registry(request).get(x_user_id)
    except PreconditionError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


async def _read_upload(upload: UploadFile) -> FileUpload:
    content = await upload.read()
    return FileUpload(
        filename=upload.filename or "upload",
        content=content,
        content_type=upload.content_type,
    )


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------

@router.post("/session", status_code=201)
async def open_session(
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> dict[str, Any]:
    """Login hook: bind a session to the identity and load its profile."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        session = await _registry(request).open(x_user_id)
    except ProfileError as exc:
        logger.error(
            "open_session_failed",
            extra={"user_id": x_user_id, "error_message": str(exc)},
        )
        raise _http_error(exc) from exc
    return session.store.snapshot()


@router.delete("/session", status_code=204)
async def close_session(
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> None:
    """Logout hook: drop the session and everything cached for it."""
    if not x_user_id or not _registry(request).close(x_user_id):
        raise HTTPException(status_code=401, detail="No authenticated session for this identity")


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

@router.get("/profile")
async def read_profile(session: SessionContext = Depends(get_session)) -> dict[str, Any]:
    """Return the cached record, documents and busy flag."""
    return session.store.snapshot()


@router.put("/profile")
async def submit_profile(
    fields: dict[str, Any],
    session: SessionContext = Depends(get_session),
) -> dict[str, Any]:
    """Save the profile form; the first save assigns the membership code."""
    try:
        await session.engine.submit_profile(session.user_id, fields)  # type: ignore[arg-type]
    except ProfileError as exc:
        raise _http_error(exc) from exc
    return session.store.snapshot()


@router.post("/profile/documents", status_code=201)
async def upload_document(
    type: DocumentType = Form(...),
    file: UploadFile = File(...),
    session: SessionContext = Depends(get_session),
) -> dict[str, Any]:
    """Attach a supporting document to the session (status ``pending``)."""
    upload = await _read_upload(file)
    try:
        entry = await session.engine.upload_document(session.user_id, type, upload)  # type: ignore[arg-type]
    except ProfileError as exc:
        raise _http_error(exc) from exc
    return entry.model_dump(mode="json")


@router.post("/profile/picture")
async def upload_profile_picture(
    file: UploadFile = File(...),
    session: SessionContext = Depends(get_session),
) -> dict[str, Any]:
    """Replace the member's profile picture."""
    upload = await _read_upload(file)
    try:
        url = await session.engine.upload_profile_picture(session.user_id, upload)  # type: ignore[arg-type]
    except ProfileError as exc:
        raise _http_error(exc) from exc
    return {"profile_picture": url}


@router.get("/profile/card")
async def read_id_card(session: SessionContext = Depends(get_session)) -> dict[str, Any]:
    """Return what the ID-card renderer needs, addressed by the membership code."""
    try:
        card = session.engine.build_id_card()
    except ProfileError as exc:
        raise _http_error(exc) from exc
    return card.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

@router.get("/notifications")
async def drain_notifications(
    session: SessionContext = Depends(get_session),
) -> list[dict[str, Any]]:
    """Return and clear the session's pending notifications."""
    if not isinstance(session.notifier, QueueNotifier):
        return []
    return [n.model_dump(mode="json") for n in session.notifier.drain()]
