"""Shared test fixtures.

Provides a FastAPI ``test_client``, a mock Supabase client whose
``students`` table supports fluent chaining, and a ready-to-use
``ProfileStore`` / ``SyncEngine`` pair bound to ``USER_ID``.
"""

import os
from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")

USER_ID = "7b0f6c1e-3c1d-4a55-9a53-2f1f0f7d2a11"


def chainable_table_mock() -> MagicMock:
    """Return a mock that supports fluent chaining (select/eq/limit/update/upsert)."""
    m = MagicMock()
    for method in ("select", "insert", "upsert", "update", "eq", "limit"):
        getattr(m, method).return_value = m
    m.execute.return_value = MagicMock(data=[])
    return m


@pytest.fixture()
def students_table() -> MagicMock:
    return chainable_table_mock()


@pytest.fixture()
def picture_bucket() -> MagicMock:
    bucket = MagicMock()
    bucket.upload.return_value = MagicMock(path="uploaded")
    bucket.get_public_url.side_effect = (
        lambda path: f"https://test.supabase.co/storage/v1/object/public/profile_pictures/{path}"
    )
    return bucket


@pytest.fixture()
def supabase_client(students_table: MagicMock, picture_bucket: MagicMock) -> MagicMock:
    """Mock Supabase client with a ``students`` table and a picture bucket."""
    client = MagicMock()
    client.table.return_value = students_table
    client.storage.from_.return_value = picture_bucket
    return client


@pytest.fixture()
def store():
    from app.services.profile_store import ProfileStore

    return ProfileStore(owner_id=USER_ID)


@pytest.fixture()
def notifier():
    from app.services.notifications import QueueNotifier

    return QueueNotifier()


@pytest.fixture()
def engine(store, supabase_client: MagicMock, notifier):
    from app.services.sync_engine import SyncEngine

    return SyncEngine(store, client=supabase_client, notifier=notifier)


@pytest.fixture()
def mock_supabase_module() -> Generator[MagicMock, None, None]:
    """Patch the Supabase client at module level in the health router."""
    mock_client = MagicMock()
    mock_client.table.return_value = chainable_table_mock()
    with patch("app.routers.health.get_supabase", return_value=mock_client):
        yield mock_client


@pytest.fixture()
def mock_supabase_disconnected() -> Generator[MagicMock, None, None]:
    """Patch ``get_supabase`` to simulate a disconnected database."""
    with patch(
        "app.routers.health.get_supabase",
        side_effect=Exception("Connection refused"),
    ):
        yield MagicMock()


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient with the background scheduler stubbed out."""
    from app.main import app

    with patch("app.main.start_scheduler"), patch("app.main.shutdown_scheduler"):
        with TestClient(app) as client:
            yield client
