"""
kvsplit/models/partition.py

Partition descriptors: one logical table instance handed from the layout
stage to the split stage.

A descriptor is one of two variants:

    PrefixPartition      key_patterns  → rows are found by scanning keys
                                         directly at read time
    SortedSetPartition   set_patterns  → patterns name sorted-set keys that
                                         the planner enumerates and
                                         subdivides by score

Both variants share a Connection (endpoint, value type, TLS / cluster /
db-number flags) which is also copied onto every split they produce.

The layout stage ships a descriptor as a flat string property map.  The
map can hold both pattern properties or neither; from_properties() is the
only place that can see such a row, and it rejects it.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Mapping

from kvsplit.errors import InvalidPartitionError

# ---------------------------------------------------------------------------
# Flat property names
# ---------------------------------------------------------------------------

ENDPOINT_PROP      = "redis-endpoint"
VALUE_TYPE_PROP    = "redis-value-type"
KEY_PREFIX_PROP    = "redis-key-prefix"
ZSET_KEYS_PROP     = "redis-zset-keys"
SSL_FLAG_PROP      = "redis-ssl-flag"
CLUSTER_FLAG_PROP  = "redis-cluster-flag"
DB_NUMBER_PROP     = "redis-db-number"


class PartitionMode(str, Enum):
    """How the planner finds the work for a partition."""

    PREFIX     = "PREFIX"
    SORTED_SET = "SORTED_SET"


class ValueType(str, Enum):
    """How the split reader decodes a key's value into row columns."""

    LITERAL = "literal"
    HASH    = "hash"
    ZSET    = "zset"


@dataclass(frozen=True)
class Connection:
    """Where the store lives and how the reader should talk to it."""

    endpoint: str
    value_type: ValueType = ValueType.LITERAL
    tls_enabled: bool = False
    cluster_mode: bool = False
    db_number: int = 0

    def to_properties(self) -> dict[str, str]:
        props = {
            ENDPOINT_PROP:   self.endpoint,
            VALUE_TYPE_PROP: self.value_type.value,
        }
        if self.tls_enabled:
            props[SSL_FLAG_PROP] = "true"
        if self.cluster_mode:
            props[CLUSTER_FLAG_PROP] = "true"
        if self.db_number:
            props[DB_NUMBER_PROP] = str(self.db_number)
        return props


@dataclass(frozen=True)
class PrefixPartition:
    connection: Connection
    key_patterns: str

    mode: ClassVar[PartitionMode] = PartitionMode.PREFIX

    @property
    def patterns(self) -> str:
        return self.key_patterns

    def to_properties(self) -> dict[str, str]:
        return {**self.connection.to_properties(), KEY_PREFIX_PROP: self.key_patterns}


@dataclass(frozen=True)
class SortedSetPartition:
    connection: Connection
    set_patterns: str

    mode: ClassVar[PartitionMode] = PartitionMode.SORTED_SET

    @property
    def patterns(self) -> str:
        return self.set_patterns

    def to_properties(self) -> dict[str, str]:
        return {**self.connection.to_properties(), ZSET_KEYS_PROP: self.set_patterns}


PartitionDescriptor = PrefixPartition | SortedSetPartition


# ---------------------------------------------------------------------------
# Flat map parsing
# ---------------------------------------------------------------------------

def _get(props: Mapping[str, str | None], name: str) -> str | None:
    value = props.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_flag(props: Mapping[str, str | None], name: str) -> bool:
    raw = _get(props, name)
    if raw is None:
        return False
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise InvalidPartitionError(f"{name} must be 'true' or 'false', got {raw!r}")


def _parse_db_number(props: Mapping[str, str | None]) -> int:
    raw = _get(props, DB_NUMBER_PROP)
    if raw is None:
        return 0
    try:
        db_number = int(raw)
    except ValueError:
        raise InvalidPartitionError(f"{DB_NUMBER_PROP} must be an integer, got {raw!r}") from None
    if db_number < 0:
        raise InvalidPartitionError(f"{DB_NUMBER_PROP} must not be negative, got {db_number}")
    return db_number


def _parse_value_type(props: Mapping[str, str | None]) -> ValueType:
    raw = _get(props, VALUE_TYPE_PROP)
    if raw is None:
        return ValueType.LITERAL
    try:
        return ValueType(raw.lower())
    except ValueError:
        allowed = ", ".join(v.value for v in ValueType)
        raise InvalidPartitionError(
            f"{VALUE_TYPE_PROP} must be one of {allowed}, got {raw!r}"
        ) from None


def connection_from_properties(props: Mapping[str, str | None]) -> Connection:
    endpoint = _get(props, ENDPOINT_PROP)
    if endpoint is None:
        raise InvalidPartitionError(f"{ENDPOINT_PROP} is required")
    return Connection(
        endpoint=endpoint,
        value_type=_parse_value_type(props),
        tls_enabled=_parse_flag(props, SSL_FLAG_PROP),
        cluster_mode=_parse_flag(props, CLUSTER_FLAG_PROP),
        db_number=_parse_db_number(props),
    )


def from_properties(props: Mapping[str, str | None]) -> PartitionDescriptor:
    """Build a descriptor from the layout stage's flat property map.

    Raises:
        InvalidPartitionError: when the endpoint is missing, when both or
            neither of the pattern properties are set, or when a flag, db
            number or value type cannot be parsed.
    """
    connection = connection_from_properties(props)

    key_patterns = _get(props, KEY_PREFIX_PROP)
    set_patterns = _get(props, ZSET_KEYS_PROP)
    if key_patterns is not None and set_patterns is not None:
        raise InvalidPartitionError(
            f"{KEY_PREFIX_PROP} and {ZSET_KEYS_PROP} are mutually exclusive"
        )
    if key_patterns is not None:
        return PrefixPartition(connection=connection, key_patterns=key_patterns)
    if set_patterns is not None:
        return SortedSetPartition(connection=connection, set_patterns=set_patterns)
    raise InvalidPartitionError(f"one of {KEY_PREFIX_PROP} or {ZSET_KEYS_PROP} is required")
