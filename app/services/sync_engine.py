"""Remote synchronisation of the member profile.

``SyncEngine`` is the only component that talks to Supabase (the
``students`` table and the ``profile_pictures`` storage bucket).  Every
mutation follows write-then-refresh: the ``ProfileStore`` is only updated
after the remote effect has completed, so a failure never leaves a
half-applied change in memory.

The Supabase client is synchronous; each call is pushed to a worker thread
with ``asyncio.to_thread`` so the network calls are the only suspension
points of an operation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any
from uuid import uuid4

from pydantic import ValidationError
from supabase import Client

from app.core.config import settings
from app.core.constants import DEFAULT_FILE_EXTENSION, DOCUMENT_TYPE_LABELS_PT
from app.core.exceptions import (
    PreconditionError,
    ProfileValidationError,
    StoreBusyError,
    TransientStoreError,
)
from app.db.supabase import get_supabase
from app.models.document import DocumentEntry, FileUpload, new_document_entry
from app.models.enums import DocumentType
from app.models.student import IdCard, StudentProfileInput, StudentRecord, SupabaseStudent
from app.services import card_export
from app.services.code_generator import generate_unique_code
from app.services.notifications import LoggingNotifier, Notifier, build_notification
from app.services.profile_store import ProfileStore
from app.services.record_mapper import to_internal, to_remote

logger = logging.getLogger(__name__)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _file_extension(filename: str) -> str:
    suffix = PurePath(filename).suffix.lstrip(".").lower()
    return suffix or DEFAULT_FILE_EXTENSION


class SyncEngine:
    """Runs profile reads and writes against Supabase for one ``ProfileStore``."""

    def __init__(
        self,
        store: ProfileStore,
        client: Client | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _notify(self, event: str, **params: Any) -> None:
        self.notifier.notify(build_notification(event, **params))

    def _precondition(self, event: str, message: str) -> PreconditionError:
        """Report a failed precondition and return the error to raise."""
        self._notify(event)
        logger.warning(
            "precondition_failed",
            extra={"event": event, "owner_id": self.store.owner_id},
        )
        return PreconditionError(message)

    def _require_identity(self, user_id: str) -> None:
        if self.store.owner_id is None or self.store.owner_id != user_id:
            raise self._precondition(
                "not_authenticated",
                f"User {user_id} is not the authenticated identity of this session",
            )

    def _apply(self, generation: int, mutate: Callable[[], None]) -> None:
        """Run *mutate* on the store unless the session was reset meanwhile."""
        if self.store.generation != generation:
            logger.warning(
                "stale_result_discarded",
                extra={"owner_id": self.store.owner_id},
            )
            raise PreconditionError("Session ended before the operation completed")
        mutate()

    async def _load(self, user_id: str) -> StudentRecord | None:
        """Read the ``students`` row for *user_id* (no store mutation)."""

        def _query() -> Any:
            return (
                self.client.table(settings.STUDENTS_TABLE)
                .select("*")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )

        try:
            result = await asyncio.to_thread(_query)
        except Exception as exc:
            logger.error(
                "fetch_profile_failed",
                extra={"user_id": user_id, "error_message": str(exc)},
            )
            raise TransientStoreError(f"Failed to fetch student {user_id}: {exc}") from exc

        rows = result.data or []
        if not rows:
            return None
        try:
            row = SupabaseStudent.model_validate(rows[0])
        except ValidationError as exc:
            logger.error(
                "fetch_profile_malformed_row",
                extra={"user_id": user_id, "error_message": str(exc)},
            )
            raise TransientStoreError(f"Malformed students row for {user_id}") from exc
        if not row.id:
            logger.error("fetch_profile_row_without_id", extra={"user_id": user_id})
            raise TransientStoreError(f"Malformed students row for {user_id}")
        return to_internal(row)

    # ------------------------------------------------------------------
    # fetch_profile
    # ------------------------------------------------------------------

    async def fetch_profile(self, user_id: str) -> StudentRecord | None:
        """Load the member's record into the store.

        Returns ``None`` when the member has no row yet, which is not an
        error.  On a store failure the previous in-memory record is kept
        and ``TransientStoreError`` is raised.
        """
        self._require_identity(user_id)
        try:
            with self.store.operation("fetch_profile") as generation:
                record = await self._load(user_id)
                self._apply(generation, lambda: self.store.set_record(record))
        except StoreBusyError:
            self._notify("busy")
            raise
        except TransientStoreError:
            self._notify("fetch_failed")
            raise

        logger.info(
            "fetch_profile_completed",
            extra={"user_id": user_id, "found": record is not None},
        )
        return record

    # ------------------------------------------------------------------
    # submit_profile
    # ------------------------------------------------------------------

    async def submit_profile(
        self,
        user_id: str,
        fields: StudentProfileInput | dict[str, Any],
    ) -> StudentRecord:
        """Persist the submitted profile fields and refresh the store.

        1. Validate *fields* (no I/O on failure).
        2. Reuse the record's membership code, or generate one if the
           record has none yet.
        3. Write fields, code and ``updated_at`` in a single request.
        4. Re-read the row and replace the cached record with it.
        """
        self._require_identity(user_id)

        if not isinstance(fields, StudentProfileInput):
            try:
                fields = StudentProfileInput.model_validate(fields)
            except ValidationError as exc:
                self._notify("invalid_profile")
                raise ProfileValidationError(
                    "Invalid profile fields", errors=exc.errors(include_url=False)
                ) from exc

        try:
            with self.store.operation("submit_profile") as generation:
                if self.store.loaded:
                    existing = self.store.current_record
                else:
                    existing = await self._load(user_id)

                payload = to_remote(fields)
                if payload["profile_picture_url"] is None:
                    # keep whatever picture is already linked
                    del payload["profile_picture_url"]
                payload["updated_at"] = _utcnow_iso()

                if existing is not None and existing.unique_code:
                    unique_code = existing.unique_code
                else:
                    unique_code = generate_unique_code()
                    payload["unique_code"] = unique_code

                await self._write_profile(user_id, payload, create=existing is None)

                refreshed = await self._load(user_id)
                if refreshed is None:
                    raise TransientStoreError(
                        f"Student {user_id} not found after saving the profile"
                    )
                self._apply(generation, lambda: self.store.set_record(refreshed))
        except StoreBusyError:
            self._notify("busy")
            raise
        except TransientStoreError:
            self._notify("submit_failed")
            raise

        logger.info(
            "submit_profile_completed",
            extra={
                "user_id": user_id,
                "code_generated": "unique_code" in payload,
            },
        )
        self._notify("submit_succeeded", unique_code=refreshed.unique_code or unique_code)
        return refreshed

    async def _write_profile(
        self,
        user_id: str,
        payload: dict[str, Any],
        create: bool,
    ) -> None:
        """Update the member's row, or upsert it when no row was found."""

        def _execute() -> Any:
            table = self.client.table(settings.STUDENTS_TABLE)
            if create:
                return table.upsert({"id": user_id, **payload}, on_conflict="id").execute()
            return table.update(payload).eq("id", user_id).execute()

        try:
            await asyncio.to_thread(_execute)
        except Exception as exc:
            logger.error(
                "submit_profile_write_failed",
                extra={"user_id": user_id, "create": create, "error_message": str(exc)},
            )
            raise TransientStoreError(f"Failed to save student {user_id}: {exc}") from exc

    # ------------------------------------------------------------------
    # upload_document
    # ------------------------------------------------------------------

    async def upload_document(
        self,
        student_id: str,
        doc_type: DocumentType | str,
        file: FileUpload,
    ) -> DocumentEntry:
        """Append a ``pending`` document entry to the session.

        Documents are kept in memory only; nothing is written to Supabase
        and the entries disappear when the session is reset.
        """
        record = self.store.current_record
        if record is None or record.id != student_id:
            raise self._precondition(
                "record_required",
                f"No student record loaded for {student_id}; register before uploading",
            )
        try:
            doc_type = DocumentType(doc_type)
        except ValueError as exc:
            self._notify("invalid_document_type")
            raise ProfileValidationError(f"Unknown document type: {doc_type}") from exc

        try:
            with self.store.operation("upload_document"):
                entry = new_document_entry(student_id, doc_type, file)
                self.store.append_document(entry)
        except StoreBusyError:
            self._notify("busy")
            raise

        logger.info(
            "upload_document_completed",
            extra={
                "student_id": student_id,
                "document_id": entry.id,
                "type": entry.type.value,
                "size": file.size,
            },
        )
        self._notify("document_uploaded", label=DOCUMENT_TYPE_LABELS_PT[entry.type.value])
        return entry

    # ------------------------------------------------------------------
    # upload_profile_picture
    # ------------------------------------------------------------------

    async def upload_profile_picture(self, user_id: str, file: FileUpload) -> str:
        """Upload a new profile picture and link it to the member's record.

        Steps run strictly in order: upload the blob, resolve its public
        URL, store the URL on the ``students`` row, update the cached
        record.  A failure stops the sequence and leaves the cached record
        untouched.  If only the row update fails, the uploaded blob stays
        in the bucket unlinked.

        Returns the public URL of the new picture.
        """
        self._require_identity(user_id)
        if self.store.current_record is None:
            raise self._precondition(
                "record_required",
                f"No student record loaded for {user_id}; register before uploading",
            )

        path = f"{user_id}/{uuid4()}.{_file_extension(file.filename)}"
        try:
            with self.store.operation("upload_profile_picture") as generation:
                bucket = self.client.storage.from_(settings.PROFILE_PICTURES_BUCKET)
                file_options = {
                    "content-type": file.content_type or "application/octet-stream",
                    "upsert": "true",
                }

                try:
                    await asyncio.to_thread(bucket.upload, path, file.content, file_options)
                except Exception as exc:
                    logger.error(
                        "profile_picture_upload_failed",
                        extra={"user_id": user_id, "path": path, "error_message": str(exc)},
                    )
                    raise TransientStoreError(f"Failed to upload picture: {exc}") from exc

                try:
                    public_url = await asyncio.to_thread(bucket.get_public_url, path)
                except Exception as exc:
                    logger.error(
                        "profile_picture_url_failed",
                        extra={"user_id": user_id, "path": path, "error_message": str(exc)},
                    )
                    raise TransientStoreError(f"Failed to resolve picture URL: {exc}") from exc
                if not public_url:
                    raise TransientStoreError(f"Storage returned no public URL for {path}")

                updated_at = _utcnow_iso()

                def _link() -> Any:
                    return (
                        self.client.table(settings.STUDENTS_TABLE)
                        .update({"profile_picture_url": public_url, "updated_at": updated_at})
                        .eq("id", user_id)
                        .execute()
                    )

                try:
                    await asyncio.to_thread(_link)
                except Exception as exc:
                    logger.error(
                        "profile_picture_link_failed",
                        extra={
                            "user_id": user_id,
                            "orphaned_blob": path,
                            "error_message": str(exc),
                        },
                    )
                    raise TransientStoreError(f"Failed to link picture: {exc}") from exc

                def _update_cache() -> None:
                    current = self.store.current_record
                    if current is not None:
                        self.store.set_record(
                            current.model_copy(
                                update={
                                    "profile_picture": public_url,
                                    "updated_at": datetime.fromisoformat(updated_at),
                                }
                            )
                        )

                self._apply(generation, _update_cache)
        except StoreBusyError:
            self._notify("busy")
            raise
        except TransientStoreError:
            self._notify("picture_failed")
            raise

        logger.info(
            "upload_profile_picture_completed",
            extra={"user_id": user_id, "path": path},
        )
        self._notify("picture_updated")
        return public_url

    # ------------------------------------------------------------------
    # ID card
    # ------------------------------------------------------------------

    def resolve_card_identifier(self) -> str:
        """Return the membership code addressing the member's ID card.

        Never generates a code; a member without one gets a
        ``PreconditionError``.
        """
        with self._card_precondition():
            return card_export.resolve_card_identifier(self.store)

    def build_id_card(self) -> IdCard:
        """Return the ID-card payload, reporting a missing record or code."""
        with self._card_precondition():
            return card_export.build_id_card(self.store)

    @contextmanager
    def _card_precondition(self) -> Iterator[None]:
        try:
            yield
        except PreconditionError:
            self._notify(
                "record_required" if self.store.current_record is None else "code_required"
            )
            raise
