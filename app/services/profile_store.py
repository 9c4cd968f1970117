"""In-memory profile cache for one authenticated session.

The store is the only holder of the member's live ``StudentRecord`` and
``DocumentEntry`` list.  It performs no I/O; ``SyncEngine`` writes to it
after each remote effect completes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from app.core.exceptions import StoreBusyError
from app.models.document import DocumentEntry
from app.models.student import StudentRecord

logger = logging.getLogger(__name__)


class ProfileStore:
    """Session-scoped holder of ``current_record``, ``documents`` and ``busy``.

    ``owner_id`` is the identity the contents belong to and ``loaded`` is
    True once a fetch for that identity has completed (even if it found no
    row).  ``generation`` increases on every ``reset()``; results of an
    operation that started under an older generation must be discarded.
    """

    def __init__(self, owner_id: str | None = None) -> None:
        self.owner_id: str | None = owner_id
        self.current_record: StudentRecord | None = None
        self.loaded: bool = False
        self.busy: bool = False
        self.generation: int = 0
        self._documents: list[DocumentEntry] = []

    @property
    def documents(self) -> tuple[DocumentEntry, ...]:
        """Entries in upload order."""
        return tuple(self._documents)

    def set_record(self, record: StudentRecord | None) -> None:
        self.current_record = record
        self.loaded = True

    def append_document(self, entry: DocumentEntry) -> None:
        self._documents.append(entry)

    def reset(self, owner_id: str | None = None) -> None:
        """Discard all cached state, optionally re-binding to *owner_id*."""
        logger.debug(
            "profile_store_reset",
            extra={"previous_owner": self.owner_id, "new_owner": owner_id},
        )
        self.owner_id = owner_id
        self.current_record = None
        self.loaded = False
        self.busy = False
        self.generation += 1
        self._documents = []

    @contextmanager
    def operation(self, name: str) -> Iterator[int]:
        """Mark the store busy for the duration of one operation.

        Yields the generation the operation started under.  Raises
        ``StoreBusyError`` if another operation is already running.  The
        flag is advisory: it only guards callers that go through here.
        """
        if self.busy:
            raise StoreBusyError(f"Cannot start {name}: another operation is in flight")
        started_under = self.generation
        self.busy = True
        try:
            yield started_under
        finally:
            # a reset() during the operation already cleared the flag
            if self.generation == started_under:
                self.busy = False

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-ready view of the store for the presentation layer."""
        return {
            "record": (
                self.current_record.model_dump(mode="json")
                if self.current_record is not None
                else None
            ),
            "documents": [doc.model_dump(mode="json") for doc in self._documents],
            "busy": self.busy,
        }
