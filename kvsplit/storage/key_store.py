"""
kvsplit/storage/key_store.py

The two Redis operations split planning needs, and nothing more:

    scan_keys()      one SCAN page: SCAN cursor MATCH pattern COUNT n
    count_members()  ZCOUNT key min max

Both take the caller's Redis client; this module never opens, caches or
closes connections.  Retries belong to the client.  Any failure (refused
connection, timeout, server error) is re-raised as StoreUnavailableError
so the planner can abort the call as a whole.  A key or reply that is
not valid UTF-8 cannot be carried in a split and is re-raised as
InvalidPartitionError.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from kvsplit.errors import InvalidPartitionError, StoreUnavailableError

logger = structlog.get_logger(__name__)

# SCAN starts from, and signals completion with, cursor 0.
INITIAL_CURSOR = 0


@dataclass
class ScanPage:
    """One SCAN response."""

    cursor: int
    keys: list[str] = field(default_factory=list)
    finished: bool = False


async def scan_keys(
    redis: Redis,
    pattern: str,
    cursor: int = INITIAL_CURSOR,
    *,
    count: int | None = None,
) -> ScanPage:
    """Fetch one page of keys matching *pattern*.

    Args:
        redis:   Async Redis client.
        pattern: Glob passed as MATCH.
        cursor:  Cursor returned by the previous page, or 0 to start.
        count:   COUNT hint; Redis may return more or fewer keys.

    Returns:
        ScanPage whose ``finished`` flag is set once Redis hands back cursor 0.
        The page may be empty without being finished.
    """
    try:
        next_cursor, keys = await redis.scan(cursor=cursor, match=pattern, count=count)
    except (RedisError, OSError) as exc:
        logger.warning("store_unavailable", op="scan", pattern=pattern, cursor=cursor, error=str(exc))
        raise StoreUnavailableError(f"SCAN {pattern!r} at cursor {cursor} failed: {exc}") from exc
    except UnicodeDecodeError as exc:
        logger.warning("undecodable_key", op="scan", pattern=pattern, cursor=cursor, error=str(exc))
        raise InvalidPartitionError(f"SCAN {pattern!r} matched a key that is not UTF-8") from exc

    next_cursor = int(next_cursor)
    page = ScanPage(
        cursor=next_cursor,
        keys=list(keys),
        finished=next_cursor == INITIAL_CURSOR,
    )
    logger.debug(
        "scan_page_fetched",
        pattern=pattern,
        cursor=cursor,
        next_cursor=next_cursor,
        keys=len(page.keys),
        finished=page.finished,
    )
    return page


async def count_members(
    redis: Redis,
    key: str,
    min_score: str = "-inf",
    max_score: str = "+inf",
) -> int:
    """Return how many members of sorted set *key* score within the bounds.

    A missing key counts as zero.
    """
    try:
        count = await redis.zcount(key, min_score, max_score)
    except (RedisError, OSError) as exc:
        logger.warning("store_unavailable", op="zcount", key=key, error=str(exc))
        raise StoreUnavailableError(f"ZCOUNT {key!r} failed: {exc}") from exc
    except UnicodeDecodeError as exc:
        logger.warning("undecodable_key", op="zcount", key=key, error=str(exc))
        raise InvalidPartitionError(f"ZCOUNT {key!r} returned a reply that is not UTF-8") from exc
    return int(count)
