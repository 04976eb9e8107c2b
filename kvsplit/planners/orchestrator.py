"""
kvsplit/planners/orchestrator.py

Split planning entry point: validates a request and dispatches it.

Pipeline
--------
  descriptors + token
      │
      ├─► validate request shape          → exactly one descriptor, budget ≥ 1
      │
      ├─► dispatch on descriptor variant ──────────────────────────┐
      │     PrefixPartition    → prefix_planner.expand()           │
      │                          (no store I/O, token ignored)     │
      │     SortedSetPartition → decode token                      │
      │                          zset_planner.enumerate_splits()   │
      │                          encode returned state             │
      │                                                            │
      └─► SplitBatch  ◄────────────────────────────────────────────┘

Store client
------------
The Redis client is injected by the caller and borrowed for this call only.
The planner is stateless: the descriptor and the token fully determine what
a call does.
"""
from __future__ import annotations

from collections.abc import Sequence

import structlog
from redis.asyncio import Redis

from kvsplit.config import settings
from kvsplit.errors import InvalidPartitionError, InvalidRequestError
from kvsplit.models.partition import PartitionDescriptor, PrefixPartition, SortedSetPartition
from kvsplit.planners import SplitBatch
from kvsplit.planners import prefix_planner, zset_planner
from kvsplit.planners.continuation import decode_token, encode_token

logger = structlog.get_logger(__name__)


async def plan(
    descriptors: Sequence[PartitionDescriptor],
    redis: Redis | None,
    *,
    token: str | None = None,
    max_splits_per_call: int | None = None,
    target_split_size: int | None = None,
) -> SplitBatch:
    """Plan the next batch of splits for a single partition.

    Args:
        descriptors:         The partitions to plan; exactly one is supported.
        redis:               Async Redis client.  Only SORTED_SET partitions use
                             it, so it may be None for PREFIX partitions.
        token:               Continuation token from the previous call, if any.
        max_splits_per_call: Split budget for SORTED_SET partitions.  Defaults
                             to ``settings.max_splits_per_call``.
        target_split_size:   Members per sorted-set split.  Defaults to
                             ``settings.target_split_size``.

    Returns:
        SplitBatch with the splits and the next continuation token (None when
        the partition is fully planned).

    Raises:
        InvalidRequestError:   wrong descriptor count, bad budget, bad token.
        InvalidPartitionError: malformed descriptor or empty pattern list,
                               or a cluster-mode SORTED_SET partition.
        StoreUnavailableError: SCAN or ZCOUNT failed.
    """
    if len(descriptors) != 1:
        raise InvalidRequestError(f"expected exactly one partition, got {len(descriptors)}")
    partition = descriptors[0]

    budget = settings.max_splits_per_call if max_splits_per_call is None else max_splits_per_call
    if budget < 1:
        raise InvalidRequestError(f"split budget must be at least 1, got {budget}")
    target = settings.target_split_size if target_split_size is None else target_split_size
    if target < 1:
        raise InvalidRequestError(f"target split size must be at least 1, got {target}")

    if isinstance(partition, PrefixPartition):
        if token is not None:
            logger.debug("prefix_token_ignored", endpoint=partition.connection.endpoint)
        batch = SplitBatch(splits=list(prefix_planner.expand(partition)))

    elif isinstance(partition, SortedSetPartition):
        if partition.connection.cluster_mode:
            # SCAN against one node would only see that shard's keys.
            raise InvalidPartitionError(
                "sorted-set partitions cannot be planned in cluster mode"
            )
        if redis is None:
            raise InvalidRequestError("sorted-set partitions need a store client")
        patterns = prefix_planner.parse_patterns(partition.set_patterns)
        resume = decode_token(token, patterns) if token is not None else None

        splits, state = await zset_planner.enumerate_splits(
            partition,
            redis,
            resume=resume,
            budget=budget,
            target_split_size=target,
            score_window=settings.score_window,
            scan_count=settings.scan_count,
        )
        batch = SplitBatch(
            splits=list(splits),
            continuation_token=encode_token(state) if state is not None else None,
        )

    else:
        raise InvalidPartitionError(
            f"unsupported partition descriptor: {type(partition).__name__}"
        )

    logger.info(
        "split_plan_complete",
        mode=partition.mode.value,
        endpoint=partition.connection.endpoint,
        resumed=token is not None,
        splits=len(batch.splits),
        done=batch.done,
    )
    return batch
