"""
kvsplit/planners/zset_planner.py

Planner for SORTED_SET partitions: the collection enumerator.

Strategy
--------
For every comma-separated pattern, in order:

  1. SCAN the store page by page (MATCH pattern) until Redis reports the
     pattern finished.  Keys of each page are handled before the next SCAN.
  2. ZCOUNT each discovered key over (-inf, +inf).
  3. Cut the key into max(1, ceil(count / target_split_size)) score ranges of
     equal width and emit one split per range.

Score ranges
------------
(-inf, +inf) has no finite width, so the equal-width grid is laid over a
configured score window [lo, hi).  Boundary i of n is lo + (hi - lo) * i / n;
the first range is widened down to -inf and the last up to +inf.  Adjacent
ranges share the same computed boundary, so the ranges of a key tile the
whole score domain with no gap or overlap.  Member counts per range follow
the score distribution and are not equalized.

Budget
------
Emission stops when the call already holds *budget* splits and another one
is ready.  The position at that point (pattern, cursor, rest of the current
SCAN page, sub-split offset, and the chosen number of parts for the key in
progress) becomes the continuation state.  Stopping only when a further split
exists means a state is returned if and only if work remains.

Duplicates
----------
Redis may return a key more than once during one SCAN.  Repeats inside a
page are collapsed; repeats across pages are emitted again, which keeps the
output independent of where call boundaries fall.  Readers must therefore
expect the splits of such a key to appear twice and either tolerate the
repeated rows or deduplicate them downstream.

Every Redis call is awaited in sequence.  Store failures propagate as
StoreUnavailableError and abort the call with nothing emitted.
"""
from __future__ import annotations

import math

import structlog
from redis.asyncio import Redis

from kvsplit.models.partition import SortedSetPartition
from kvsplit.models.split import SortedSetSplit
from kvsplit.planners.continuation import ContinuationState
from kvsplit.planners.prefix_planner import parse_patterns
from kvsplit.storage import key_store

logger = structlog.get_logger(__name__)


def split_count(member_count: int, target_split_size: int) -> int:
    """Number of score ranges for a key holding *member_count* members."""
    return max(1, math.ceil(member_count / target_split_size))


def score_range(index: int, parts: int, window: tuple[float, float]) -> tuple[float, float]:
    """Return the [low, high) bounds of range *index* out of *parts*."""
    lo, hi = window

    def boundary(i: int) -> float:
        return lo + (hi - lo) * i / parts

    low = -math.inf if index == 0 else boundary(index)
    high = math.inf if index == parts - 1 else boundary(index + 1)
    return low, high


def _dedupe(keys: list[str]) -> list[str]:
    return list(dict.fromkeys(keys))


async def enumerate_splits(
    partition: SortedSetPartition,
    redis: Redis,
    *,
    resume: ContinuationState | None,
    budget: int,
    target_split_size: int,
    score_window: tuple[float, float],
    scan_count: int | None = None,
) -> tuple[list[SortedSetSplit], ContinuationState | None]:
    """Enumerate score-range splits for every sorted set matching the partition.

    Args:
        partition:         SORTED_SET descriptor.
        redis:             Async Redis client, borrowed for this call only.
        resume:            State from the previous call's token, or None to
                           start from the first pattern.
        budget:            Maximum number of splits to return.
        target_split_size: Members per split the subdivision aims for.
        score_window:      (lo, hi) window for the equal-width score grid.
        scan_count:        COUNT hint for SCAN.

    Returns:
        (splits, state) where state is None once every pattern is exhausted.
    """
    patterns = parse_patterns(partition.set_patterns)
    state = resume or ContinuationState.start(patterns)

    pattern_index = state.pattern_index
    cursor = state.cursor
    pending = list(state.pending_keys)
    offset = state.offset
    parts = state.parts

    splits: list[SortedSetSplit] = []
    scans = 0
    counts = 0

    while pattern_index < len(patterns):
        pattern = patterns[pattern_index]

        while pending:
            key = pending[0]
            if parts is None:
                member_count = await key_store.count_members(redis, key)
                counts += 1
                parts = split_count(member_count, target_split_size)

            while offset < parts:
                if len(splits) >= budget:
                    next_state = ContinuationState(
                        fingerprint=state.fingerprint,
                        pattern_index=pattern_index,
                        cursor=cursor,
                        pending_keys=tuple(pending),
                        offset=offset,
                        parts=parts,
                    )
                    logger.info(
                        "zset_budget_exhausted",
                        pattern=pattern,
                        key=key,
                        offset=offset,
                        parts=parts,
                        splits=len(splits),
                        scans=scans,
                        counts=counts,
                    )
                    return splits, next_state

                low, high = score_range(offset, parts, score_window)
                splits.append(
                    SortedSetSplit(
                        connection=partition.connection,
                        key=key,
                        score_min=low,
                        score_max=high,
                    )
                )
                offset += 1

            pending.pop(0)
            offset = 0
            parts = None

        if cursor is None:
            logger.debug("zset_pattern_exhausted", pattern=pattern, pattern_index=pattern_index)
            pattern_index += 1
            cursor = key_store.INITIAL_CURSOR
            continue

        page = await key_store.scan_keys(redis, pattern, cursor, count=scan_count)
        scans += 1
        pending = _dedupe(page.keys)
        cursor = None if page.finished else page.cursor
        logger.debug(
            "zset_pattern_scanned",
            pattern=pattern,
            keys=len(pending),
            finished=page.finished,
        )

    logger.info(
        "zset_enumeration_complete",
        patterns=len(patterns),
        splits=len(splits),
        scans=scans,
        counts=counts,
    )
    return splits, None
