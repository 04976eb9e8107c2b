"""
tests/unit/test_redis_connection.py

Unit tests for kvsplit.database.redis.

The Redis class is patched so no socket is ever opened.

Coverage
--------
  - parse_endpoint() splits host and port, including IPv6-style hosts
  - parse_endpoint() rejects endpoints without a numeric port
  - open_store() passes db number, TLS and timeouts through
  - open_store() closes the client on exit, also when the body raises
  - open_store() refuses cluster-mode connections without building a client
  - get_store_opener() returns open_store
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kvsplit.config import settings
from kvsplit.database.redis import get_store_opener, open_store, parse_endpoint
from kvsplit.errors import InvalidPartitionError
from kvsplit.models.partition import Connection


class TestParseEndpoint:
    def test_host_and_port(self) -> None:
        assert parse_endpoint("cache.internal:6379") == ("cache.internal", 6379)

    def test_last_colon_wins(self) -> None:
        assert parse_endpoint("::1:6380") == ("::1", 6380)

    @pytest.mark.parametrize("endpoint", ["cache.internal", ":6379", "cache.internal:port"])
    def test_rejected(self, endpoint: str) -> None:
        with pytest.raises(InvalidPartitionError):
            parse_endpoint(endpoint)


def _fake_client() -> MagicMock:
    client = MagicMock()
    client.aclose = AsyncMock()
    return client


class TestOpenStore:
    @pytest.mark.asyncio
    async def test_client_built_from_connection(self) -> None:
        client = _fake_client()
        connection = Connection(endpoint="cache.internal:6380", tls_enabled=True, db_number=3)

        with patch("kvsplit.database.redis.Redis", return_value=client) as redis_cls:
            async with open_store(connection) as store:
                assert store is client

        kwargs = redis_cls.call_args.kwargs
        assert kwargs["host"] == "cache.internal"
        assert kwargs["port"] == 6380
        assert kwargs["db"] == 3
        assert kwargs["ssl"] is True
        assert kwargs["decode_responses"] is True
        assert kwargs["socket_timeout"] == settings.redis_socket_timeout
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_closed_when_body_raises(self) -> None:
        client = _fake_client()
        with patch("kvsplit.database.redis.Redis", return_value=client):
            with pytest.raises(RuntimeError):
                async with open_store(Connection(endpoint="cache.internal:6379")):
                    raise RuntimeError("boom")
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bad_endpoint_never_builds_client(self) -> None:
        with patch("kvsplit.database.redis.Redis") as redis_cls:
            with pytest.raises(InvalidPartitionError):
                async with open_store(Connection(endpoint="nowhere")):
                    pass
        redis_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_cluster_mode_never_builds_client(self) -> None:
        connection = Connection(endpoint="cache.internal:6379", cluster_mode=True)
        with patch("kvsplit.database.redis.Redis") as redis_cls:
            with pytest.raises(InvalidPartitionError, match="cluster"):
                async with open_store(connection):
                    pass
        redis_cls.assert_not_called()


def test_get_store_opener_returns_open_store() -> None:
    assert get_store_opener() is open_store
