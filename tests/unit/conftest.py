"""Pytest configuration and fixtures for unit tests."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from tasklevel.core.clock import to_iso
from tasklevel.core.config import settings
from tasklevel.domain.session import Session
from tasklevel.models.service_models import PushDispatchResult
from tests.unit.mocks import NOW, FakeJobScheduler, InMemoryDBClient


_DB_FUNCTIONS = [
    "transaction",
    "create_record",
    "create_records",
    "get_record",
    "update_record",
    "increment_field",
    "delete_record",
    "delete_records",
    "list_records",
    "list_all_records",
    "count_records",
    "get_first_record",
]


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches the db_client module functions to use the in-memory database."""
    for name in _DB_FUNCTIONS:
        monkeypatch.setattr(f"tasklevel.core.db_client.{name}", getattr(in_memory_db, name))
    return in_memory_db


@pytest.fixture
def mock_push(monkeypatch):
    """Replaces the push fan-out client with an AsyncMock reporting success."""
    mock = AsyncMock(return_value=PushDispatchResult(success=True, sent=1))
    monkeypatch.setattr("tasklevel.interface.push_sender.send_push", mock)
    return mock


@pytest.fixture
def fake_jobs():
    return FakeJobScheduler()


@pytest.fixture
def fixed_offset(monkeypatch):
    """Pins the local clock offset to +2 hours."""
    monkeypatch.setattr(settings, "local_utc_offset_hours", 2)


@pytest.fixture
def session():
    return Session(profile_id="owner-1")


@pytest.fixture
def other_session():
    return Session(profile_id="voter-1")


@pytest.fixture
async def owner_profile(patched_db, session):
    return await patched_db.create_record(
        collection="profiles",
        data={
            "id": session.profile_id,
            "username": "owner",
            "email": "owner@example.com",
            "points": 0,
            "created_at": to_iso(NOW - timedelta(days=30)),
        },
    )


@pytest.fixture
async def voter_profile(patched_db, other_session):
    return await patched_db.create_record(
        collection="profiles",
        data={
            "id": other_session.profile_id,
            "username": "voter",
            "email": "voter@example.com",
            "points": 0,
            "created_at": to_iso(NOW - timedelta(days=30)),
        },
    )
