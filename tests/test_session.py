"""Unit tests for session lifecycle, the registry and idle expiry."""

from __future__ import annotations

import inspect
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from app.core.exceptions import PreconditionError, TransientStoreError
from app.models.document import FileUpload
from app.services.session import SessionContext, SessionRegistry

USER_ID = "7b0f6c1e-3c1d-4a55-9a53-2f1f0f7d2a11"
OTHER_ID = "c2d9a7f0-1111-4e2b-8f0e-000000000002"


def _make_row(user_id: str = USER_ID, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": user_id,
        "name": "Ana",
        "email": "a@x.com",
        "registration_number": None,
        "course": "Direito",
        "graduation_year": None,
        "campus": None,
        "profile_picture_url": None,
        "unique_code": "STU-AB12CD",
        "created_at": "2026-02-20T12:00:00+00:00",
        "updated_at": "2026-02-20T12:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestSessionContext:
    @pytest.mark.asyncio
    async def test_authenticate_loads_profile(self, supabase_client, students_table) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        session = SessionContext(client=supabase_client)

        record = await session.authenticate(USER_ID)

        assert session.is_authenticated
        assert session.user_id == USER_ID
        assert record is not None
        assert session.store.current_record == record

    @pytest.mark.asyncio
    async def test_logout_clears_everything(self, supabase_client, students_table) -> None:
        """Given a loaded record and documents, logout empties the store."""
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        session = SessionContext(client=supabase_client)
        await session.authenticate(USER_ID)
        await session.engine.upload_document(
            USER_ID, "identity_front", FileUpload(filename="rg.jpg", content=b"x")
        )
        assert len(session.store.documents) == 1

        session.logout()

        assert session.store.current_record is None
        assert session.store.documents == ()
        assert not session.is_authenticated

    @pytest.mark.asyncio
    async def test_identity_change_discards_previous_member(self, supabase_client, students_table) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        session = SessionContext(client=supabase_client)
        await session.authenticate(USER_ID)
        await session.engine.upload_document(
            USER_ID, "identity_front", FileUpload(filename="rg.jpg", content=b"x")
        )

        students_table.execute.return_value = MagicMock(data=[])
        record = await session.authenticate(OTHER_ID)

        assert record is None
        assert session.user_id == OTHER_ID
        assert session.store.current_record is None
        assert session.store.documents == ()

    @pytest.mark.asyncio
    async def test_reauthenticate_same_identity_keeps_documents(self, supabase_client, students_table) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        session = SessionContext(client=supabase_client)
        await session.authenticate(USER_ID)
        await session.engine.upload_document(
            USER_ID, "identity_front", FileUpload(filename="rg.jpg", content=b"x")
        )

        await session.authenticate(USER_ID)

        assert len(session.store.documents) == 1

    @pytest.mark.asyncio
    async def test_authenticate_requires_identity(self, supabase_client) -> None:
        session = SessionContext(client=supabase_client)
        with pytest.raises(PreconditionError):
            await session.authenticate("")

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_session_open(self, supabase_client, students_table) -> None:
        students_table.execute.side_effect = Exception("network down")
        session = SessionContext(client=supabase_client)

        with pytest.raises(TransientStoreError):
            await session.authenticate(USER_ID)

        assert session.is_authenticated
        assert session.store.current_record is None


class TestSessionRegistry:
    @pytest.mark.asyncio
    async def test_open_get_close(self, supabase_client, students_table) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        registry = SessionRegistry(client=supabase_client)

        opened = await registry.open(USER_ID)

        assert USER_ID in registry
        assert len(registry) == 1
        assert registry.get(USER_ID) is opened
        assert registry.close(USER_ID) is True
        assert opened.store.current_record is None
        with pytest.raises(PreconditionError):
            registry.get(USER_ID)

    @pytest.mark.asyncio
    async def test_open_twice_reuses_session(self, supabase_client, students_table) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        registry = SessionRegistry(client=supabase_client)

        first = await registry.open(USER_ID)
        second = await registry.open(USER_ID)

        assert first is second

    def test_get_without_identity(self) -> None:
        registry = SessionRegistry(client=MagicMock())
        with pytest.raises(PreconditionError):
            registry.get(None)

    def test_close_unknown(self) -> None:
        assert SessionRegistry(client=MagicMock()).close(USER_ID) is False

    @pytest.mark.asyncio
    async def test_expire_idle(self, supabase_client, students_table) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        registry = SessionRegistry(client=supabase_client)
        idle = await registry.open(USER_ID)
        await registry.open(OTHER_ID)
        idle.last_activity -= 3600

        expired = registry.expire_idle(600)

        assert expired == [USER_ID]
        assert USER_ID not in registry
        assert OTHER_ID in registry
        assert idle.store.current_record is None

    @pytest.mark.asyncio
    async def test_expire_skips_busy_sessions(self, supabase_client, students_table) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        registry = SessionRegistry(client=supabase_client)
        session = await registry.open(USER_ID)
        session.last_activity -= 3600

        with session.store.operation("upload_profile_picture"):
            assert registry.expire_idle(600) == []

    @pytest.mark.asyncio
    async def test_expire_tolerates_sessions_opened_during_sweep(
        self, supabase_client, students_table
    ) -> None:
        """Given a login landing mid-sweep, the sweep neither fails nor closes it."""
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        registry = SessionRegistry(client=supabase_client)
        idle = await registry.open(USER_ID)
        late = SessionContext(client=supabase_client)

        def idle_seconds_with_login() -> float:
            registry._sessions[OTHER_ID] = late
            return 3600.0

        idle.idle_seconds = idle_seconds_with_login  # type: ignore[method-assign]

        expired = registry.expire_idle(600)

        assert expired == [USER_ID]
        assert registry._sessions.get(OTHER_ID) is late

    @pytest.mark.asyncio
    async def test_expire_skips_session_replaced_during_sweep(
        self, supabase_client, students_table
    ) -> None:
        students_table.execute.return_value = MagicMock(data=[_make_row()])
        registry = SessionRegistry(client=supabase_client)
        idle = await registry.open(USER_ID)
        fresh = SessionContext(client=supabase_client)

        def idle_seconds_with_relogin() -> float:
            registry._sessions[USER_ID] = fresh
            return 3600.0

        idle.idle_seconds = idle_seconds_with_relogin  # type: ignore[method-assign]

        assert registry.expire_idle(600) == []
        assert registry._sessions[USER_ID] is fresh


class TestScheduler:
    @patch("app.scheduler.jobs.scheduler")
    def test_start_scheduler_adds_sweep(self, mock_scheduler: MagicMock) -> None:
        from app.scheduler.jobs import expire_idle_sessions, start_scheduler

        registry = SessionRegistry(client=MagicMock())
        start_scheduler(registry)

        mock_scheduler.add_job.assert_called_once()
        call = mock_scheduler.add_job.call_args
        assert call.args[0] is expire_idle_sessions
        assert call.kwargs["id"] == "expire_idle_sessions"
        assert call.kwargs["args"] == [registry]
        assert call.kwargs["replace_existing"] is True
        mock_scheduler.start.assert_called_once()

    @patch("app.scheduler.jobs.scheduler")
    def test_shutdown_not_running_noop(self, mock_scheduler: MagicMock) -> None:
        from app.scheduler.jobs import shutdown_scheduler

        mock_scheduler.running = False
        shutdown_scheduler()

        mock_scheduler.shutdown.assert_not_called()

    @pytest.mark.asyncio
    async def test_sweep_uses_configured_timeout(self) -> None:
        from app.scheduler.jobs import expire_idle_sessions

        registry = MagicMock()
        registry.expire_idle.return_value = []

        await expire_idle_sessions(registry)

        registry.expire_idle.assert_called_once_with(60 * 60)

    def test_sweep_runs_on_the_event_loop(self) -> None:
        """The sweep shares the loop with request handlers instead of a thread."""
        from apscheduler.schedulers.asyncio import AsyncIOScheduler

        from app.scheduler.jobs import expire_idle_sessions, scheduler

        assert isinstance(scheduler, AsyncIOScheduler)
        assert inspect.iscoroutinefunction(expire_idle_sessions)
