"""
tests/api/conftest.py

Shared fixtures for API route tests.

The `client` fixture:
  - Overrides the get_store_opener FastAPI dependency so every request
    borrows the `store` fixture (an AsyncMock Redis client) instead of
    opening a connection to the endpoint in the partition.
  - Leaves require_api_key using the real implementation; tests that need
    an authenticated client send the default "changeme" key (matches
    settings.api_key default).
  - Clears dependency_overrides after each test to avoid cross-test leakage.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from kvsplit.database.redis import StoreOpener, get_store_opener
from kvsplit.main import app
from kvsplit.models.partition import Connection

# Default API key that matches settings.api_key default value.
VALID_API_KEY = "changeme"


class FakeStoreOpener:
    """Records which connections were opened and yields the shared mock."""

    def __init__(self, store: AsyncMock) -> None:
        self.store = store
        self.opened: list[Connection] = []

    @asynccontextmanager
    async def __call__(self, connection: Connection) -> AsyncGenerator[AsyncMock, None]:
        self.opened.append(connection)
        yield self.store


@pytest.fixture()
def store() -> AsyncMock:
    """Redis mock: 3 keys then 1 key per pattern, 200 members per key."""
    redis = AsyncMock()

    def _scan(cursor: int, match: str, count: int | None = None) -> tuple[int, list[str]]:
        stem = match.rstrip("*")
        if cursor == 0:
            return 1, [f"{stem}{i}" for i in range(3)]
        return 0, [f"{stem}3"]

    redis.scan.side_effect = _scan
    redis.zcount.return_value = 200
    return redis


@pytest.fixture()
def store_opener(store: AsyncMock) -> FakeStoreOpener:
    return FakeStoreOpener(store)


@pytest.fixture()
def client(store_opener: FakeStoreOpener) -> Iterator[TestClient]:
    """
    Return a TestClient whose store opener is the fake one.

    Yields inside a context manager so the lifespan runs for the full
    duration of each test, and dependency_overrides are cleared on exit.
    """

    def _override() -> StoreOpener:
        return store_opener

    app.dependency_overrides[get_store_opener] = _override

    with TestClient(app, raise_server_exceptions=True) as c:
        yield c

    app.dependency_overrides.clear()
