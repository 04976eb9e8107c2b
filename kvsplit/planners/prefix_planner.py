"""
kvsplit/planners/prefix_planner.py

Planner for PREFIX partitions.

Strategy
--------
Each comma-separated glob becomes one split; the reader scans the store for
matching keys when it executes the split.  No store I/O happens here, so the
output always fits in a single response and never needs a continuation.
"""
from __future__ import annotations

import structlog

from kvsplit.errors import InvalidPartitionError
from kvsplit.models.partition import PrefixPartition
from kvsplit.models.split import PrefixSplit

logger = structlog.get_logger(__name__)


def parse_patterns(raw: str) -> list[str]:
    """Split a comma-separated pattern list, trimming and dropping blanks.

    Raises:
        InvalidPartitionError: when nothing is left after trimming.
    """
    patterns = [piece.strip() for piece in raw.split(",")]
    patterns = [p for p in patterns if p]
    if not patterns:
        raise InvalidPartitionError(f"pattern list {raw!r} contains no patterns")
    return patterns


def expand(partition: PrefixPartition) -> list[PrefixSplit]:
    """Return one PrefixSplit per pattern, in input order."""
    splits = [
        PrefixSplit(connection=partition.connection, pattern=pattern)
        for pattern in parse_patterns(partition.key_patterns)
    ]
    logger.info("prefix_splits_expanded", endpoint=partition.connection.endpoint, splits=len(splits))
    return splits
