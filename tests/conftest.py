"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator, Callable, Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from planner.core import db_client
from planner.core.config import settings
from planner.main import app


FIXED_NOW = datetime(2026, 3, 2, 10, 30, tzinfo=UTC)


@pytest.fixture
def fixed_now() -> datetime:
    """The instant returned by ``fixed_clock``."""
    return FIXED_NOW


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns the same instant."""
    return lambda: FIXED_NOW


@pytest.fixture
async def db_path(tmp_path: Path) -> AsyncIterator[str]:
    """Fresh SQLite file with the key/value table, closed after the test."""
    path = str(tmp_path / "planner.db")
    await db_client.init_db(db_path=path)
    yield path
    await db_client.close_connection(db_path=path)


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """TestClient running the full lifespan against a temporary database."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "api.db"))
    with TestClient(app) as test_client:
        yield test_client
