"""
kvsplit/models/split.py

Splits: the self-describing units of scan work handed to the split reader.

    PrefixSplit      one glob pattern; the reader SCANs for matching keys
    SortedSetSplit   one sorted-set key plus a score range [score_min, score_max)

Score ranges
------------
The first range of a key opens at -inf and the last closes at +inf, so the
ranges of one key cover every possible score.  Every other upper bound is
exclusive.  A +inf upper bound is inclusive so members scored +inf are not
lost.

Each split flattens to a string property map (to_properties) and can be
rebuilt from one (split_from_properties), which is how it travels to the
reader.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

from kvsplit.errors import InvalidRequestError
from kvsplit.models.partition import (
    KEY_PREFIX_PROP,
    Connection,
    connection_from_properties,
)

ZSET_KEY_PROP       = "redis-zset-key"
ZSET_SCORE_MIN_PROP = "redis-zset-score-min"
ZSET_SCORE_MAX_PROP = "redis-zset-score-max"


def format_score(score: float) -> str:
    """Render a score the way Redis accepts it in a range argument."""
    if score == math.inf:
        return "+inf"
    if score == -math.inf:
        return "-inf"
    return repr(float(score))


def parse_score(raw: str) -> float:
    score = float(raw)
    if math.isnan(score):
        raise ValueError("score bound must not be NaN")
    return score


@dataclass(frozen=True)
class PrefixSplit:
    connection: Connection
    pattern: str

    def to_properties(self) -> dict[str, str]:
        return {**self.connection.to_properties(), KEY_PREFIX_PROP: self.pattern}


@dataclass(frozen=True)
class SortedSetSplit:
    connection: Connection
    key: str
    score_min: float
    score_max: float

    def score_bounds(self) -> tuple[str, str]:
        """Return the (min, max) arguments for ZRANGEBYSCORE on this split."""
        low = format_score(self.score_min)
        if self.score_max == math.inf:
            return low, "+inf"
        return low, f"({format_score(self.score_max)}"

    def to_properties(self) -> dict[str, str]:
        return {
            **self.connection.to_properties(),
            ZSET_KEY_PROP:       self.key,
            ZSET_SCORE_MIN_PROP: format_score(self.score_min),
            ZSET_SCORE_MAX_PROP: format_score(self.score_max),
        }


Split = PrefixSplit | SortedSetSplit


def split_from_properties(props: Mapping[str, str]) -> Split:
    """Resolve a split property map back into the split it was built from.

    Raises:
        InvalidPartitionError: when the connection properties are malformed.
        InvalidRequestError:   when the split-specific properties are missing
                               or malformed.
    """
    connection = connection_from_properties(props)

    pattern = props.get(KEY_PREFIX_PROP)
    if pattern:
        return PrefixSplit(connection=connection, pattern=pattern)

    key = props.get(ZSET_KEY_PROP)
    if not key:
        raise InvalidRequestError(
            f"split properties carry neither {KEY_PREFIX_PROP} nor {ZSET_KEY_PROP}"
        )
    try:
        score_min = parse_score(props[ZSET_SCORE_MIN_PROP])
        score_max = parse_score(props[ZSET_SCORE_MAX_PROP])
    except (KeyError, ValueError) as exc:
        raise InvalidRequestError(f"invalid score range for split on {key!r}: {exc}") from exc
    if score_min >= score_max:
        raise InvalidRequestError(f"empty score range [{score_min}, {score_max}) for {key!r}")

    return SortedSetSplit(connection=connection, key=key, score_min=score_min, score_max=score_max)
