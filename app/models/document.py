"""Document entries and uploaded files.

A ``DocumentEntry`` records one supporting file uploaded by a member.
Entries only live in the session's ``ProfileStore``: there is no remote
``documents`` table, so they do not survive a session reset.
"""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field

from app.core.constants import DOCUMENT_URL_SCHEME
from app.models.enums import DocumentStatus, DocumentType


class FileUpload(BaseModel):
    """A file received from the presentation layer, fully read into memory."""

    filename: str
    content: bytes = Field(repr=False)
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


class DocumentEntry(BaseModel):
    """One uploaded supporting document and its review status."""

    id: str
    student_id: str
    type: DocumentType
    file_name: str
    file_url: str
    status: DocumentStatus = DocumentStatus.pending
    created_at: datetime
    updated_at: datetime


def new_document_entry(
    student_id: str,
    doc_type: DocumentType | str,
    file: FileUpload,
) -> DocumentEntry:
    """Build a fresh ``pending`` entry for *file* owned by *student_id*.

    The entry id is generated here; ``file_url`` is a session-scoped
    reference since the file is not pushed to remote storage.
    """
    entry_id = f"doc-{uuid4().hex}"
    now = datetime.now(timezone.utc)
    return DocumentEntry(
        id=entry_id,
        student_id=student_id,
        type=DocumentType(doc_type),
        file_name=file.filename,
        file_url=f"{DOCUMENT_URL_SCHEME}://{student_id}/{entry_id}/{file.filename}",
        status=DocumentStatus.pending,
        created_at=now,
        updated_at=now,
    )
