"""
kvsplit/errors.py

Exception taxonomy for split planning.

    InvalidPartitionError   malformed or contradictory partition descriptor
    InvalidRequestError     malformed continuation token, budget or request shape
    StoreUnavailableError   any failure talking to Redis during SCAN / ZCOUNT

The first two are caller errors and are never worth retrying.  A
StoreUnavailableError is retryable: re-issue the same call with the last
continuation token that was successfully returned.
"""
from __future__ import annotations


class SplitPlanningError(Exception):
    """Base class for every error raised by the planner."""

    code: str = "SPLIT_PLANNING_ERROR"
    retryable: bool = False


class InvalidPartitionError(SplitPlanningError):
    code = "INVALID_PARTITION"


class InvalidRequestError(SplitPlanningError):
    code = "INVALID_REQUEST"


class StoreUnavailableError(SplitPlanningError):
    code = "STORE_UNAVAILABLE"
    retryable = True
