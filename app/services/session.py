"""Session lifecycle: binds an authenticated identity to its profile state.

A ``SessionContext`` owns one ``ProfileStore`` and the ``SyncEngine`` that
feeds it.  ``authenticate`` initialises it for an identity and loads the
profile; ``logout`` tears it down.  ``SessionRegistry`` keeps the live
contexts of the process, keyed by identity, and is stored on
``app.state`` rather than in module globals.
"""

from __future__ import annotations

import logging
import time

from supabase import Client

from app.core.exceptions import PreconditionError
from app.models.student import StudentRecord
from app.services.notifications import Notifier, QueueNotifier
from app.services.profile_store import ProfileStore
from app.services.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


class SessionContext:
    """Profile state and sync engine for a single authenticated member."""

    def __init__(
        self,
        client: Client | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.notifier: Notifier = notifier or QueueNotifier()
        self.store = ProfileStore()
        self.engine = SyncEngine(self.store, client=client, notifier=self.notifier)
        self.last_activity = time.monotonic()

    @property
    def user_id(self) -> str | None:
        return self.store.owner_id

    @property
    def is_authenticated(self) -> bool:
        return self.store.owner_id is not None

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_activity

    async def authenticate(self, user_id: str) -> StudentRecord | None:
        """Bind the session to *user_id* and load the member's record.

        Switching to a different identity discards everything cached for
        the previous one.  A failed fetch leaves the session authenticated
        with an empty store and re-raises ``TransientStoreError``.
        """
        if not user_id:
            raise PreconditionError("An authenticated identity is required")
        if self.store.owner_id != user_id:
            self.store.reset(owner_id=user_id)
            logger.info("session_started", extra={"user_id": user_id})
        self.touch()
        return await self.engine.fetch_profile(user_id)

    def logout(self) -> None:
        """Forget the identity and everything cached for it."""
        if self.store.owner_id is not None:
            logger.info("session_ended", extra={"user_id": self.store.owner_id})
        self.store.reset(owner_id=None)


class SessionRegistry:
    """Live sessions of the process, one per authenticated identity."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client
        self._sessions: dict[str, SessionContext] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    async def open(self, user_id: str) -> SessionContext:
        """Return the session for *user_id*, creating and loading it if needed."""
        session = self._sessions.get(user_id)
        if session is None:
            session = SessionContext(client=self._client)
            self._sessions[user_id] = session
        await session.authenticate(user_id)
        return session

    def get(self, user_id: str | None) -> SessionContext:
        """Return the live session for *user_id* or raise ``PreconditionError``."""
        session = self._sessions.get(user_id) if user_id else None
        if session is None or not session.is_authenticated:
            raise PreconditionError("No authenticated session for this identity")
        session.touch()
        return session

    def close(self, user_id: str) -> bool:
        """Log *user_id* out.  Returns False if there was no session."""
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.logout()
        return True

    def expire_idle(self, max_idle_seconds: float) -> list[str]:
        """Close every session idle for longer than *max_idle_seconds*.

        Sessions with an operation in flight are left alone.  Iterates over a
        snapshot, so sessions opened or closed meanwhile are not disturbed.
        """
        expired = []
        for user_id, session in list(self._sessions.items()):
            if session.idle_seconds() <= max_idle_seconds or session.store.busy:
                continue
            if self._sessions.get(user_id) is session:
                self.close(user_id)
                expired.append(user_id)
        if expired:
            logger.info("sessions_expired", extra={"count": len(expired)})
        return expired
