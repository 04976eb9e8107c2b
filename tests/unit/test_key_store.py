"""
tests/unit/test_key_store.py

Unit tests for kvsplit.storage.key_store.

A mocked async Redis client stands in for the store so no running Redis
instance is required.

Coverage
--------
  - scan_keys() forwards cursor / MATCH / COUNT to redis.scan
  - scan_keys() marks the page finished only when Redis returns cursor 0
  - count_members() forwards the full score domain to redis.zcount
  - Redis and socket errors become StoreUnavailableError, chained to the cause
  - undecodable keys or replies become InvalidPartitionError, not retryable
"""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from kvsplit.errors import InvalidPartitionError, StoreUnavailableError
from kvsplit.storage.key_store import ScanPage, count_members, scan_keys


def _make_redis() -> AsyncMock:
    return AsyncMock()


class TestScanKeys:
    @pytest.mark.asyncio
    async def test_forwards_arguments(self) -> None:
        redis = _make_redis()
        redis.scan.return_value = (0, [])
        await scan_keys(redis, "board-*", 17, count=50)
        redis.scan.assert_awaited_once_with(cursor=17, match="board-*", count=50)

    @pytest.mark.asyncio
    async def test_partial_page_not_finished(self) -> None:
        redis = _make_redis()
        redis.scan.return_value = (42, ["a", "b"])
        page = await scan_keys(redis, "board-*")
        assert page == ScanPage(cursor=42, keys=["a", "b"], finished=False)

    @pytest.mark.asyncio
    async def test_zero_cursor_finishes(self) -> None:
        redis = _make_redis()
        redis.scan.return_value = (0, ["c"])
        page = await scan_keys(redis, "board-*", 42)
        assert page.finished is True
        assert page.keys == ["c"]

    @pytest.mark.asyncio
    async def test_empty_page_can_be_unfinished(self) -> None:
        redis = _make_redis()
        redis.scan.return_value = (7, [])
        page = await scan_keys(redis, "board-*")
        assert page.keys == []
        assert page.finished is False

    @pytest.mark.asyncio
    async def test_string_cursor_normalized(self) -> None:
        redis = _make_redis()
        redis.scan.return_value = ("12", ["a"])
        page = await scan_keys(redis, "board-*")
        assert page.cursor == 12

    @pytest.mark.asyncio
    async def test_connection_error_wrapped(self) -> None:
        redis = _make_redis()
        cause = RedisConnectionError("refused")
        redis.scan.side_effect = cause
        with pytest.raises(StoreUnavailableError) as excinfo:
            await scan_keys(redis, "board-*")
        assert excinfo.value.__cause__ is cause
        assert excinfo.value.retryable is True

    @pytest.mark.asyncio
    async def test_os_error_wrapped(self) -> None:
        redis = _make_redis()
        redis.scan.side_effect = OSError("reset by peer")
        with pytest.raises(StoreUnavailableError):
            await scan_keys(redis, "board-*")

    @pytest.mark.asyncio
    async def test_undecodable_key_rejected(self) -> None:
        redis = _make_redis()
        cause = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        redis.scan.side_effect = cause
        with pytest.raises(InvalidPartitionError, match=r"board-\*") as excinfo:
            await scan_keys(redis, "board-*")
        assert excinfo.value.__cause__ is cause
        assert excinfo.value.retryable is False


class TestCountMembers:
    @pytest.mark.asyncio
    async def test_full_domain_by_default(self) -> None:
        redis = _make_redis()
        redis.zcount.return_value = 200
        assert await count_members(redis, "board:1") == 200
        redis.zcount.assert_awaited_once_with("board:1", "-inf", "+inf")

    @pytest.mark.asyncio
    async def test_custom_range(self) -> None:
        redis = _make_redis()
        redis.zcount.return_value = 3
        await count_members(redis, "board:1", "10", "(20")
        redis.zcount.assert_awaited_once_with("board:1", "10", "(20")

    @pytest.mark.asyncio
    async def test_timeout_wrapped(self) -> None:
        redis = _make_redis()
        redis.zcount.side_effect = RedisTimeoutError("timed out")
        with pytest.raises(StoreUnavailableError, match="board:1"):
            await count_members(redis, "board:1")

    @pytest.mark.asyncio
    async def test_undecodable_reply_rejected(self) -> None:
        redis = _make_redis()
        redis.zcount.side_effect = UnicodeDecodeError("utf-8", b"\xfe", 0, 1, "invalid start byte")
        with pytest.raises(InvalidPartitionError):
            await count_members(redis, "board:1")
