"""
kvsplit/planners/continuation.py

Continuation tokens for sorted-set enumeration.

A token is the whole resumption state of the collection enumerator; the
planner keeps nothing between calls.  The state is dumped as compact JSON by
pydantic and wrapped in URL-safe base64, so identical state always yields an
identical token.

State
-----
    pattern_index   which comma-separated pattern is being enumerated
    cursor          SCAN cursor for the next page of that pattern, or None
                    once Redis has reported the pattern finished
    pending_keys    keys from the last SCAN page not yet fully split;
                    the first one is in progress
    offset          next sub-split index of pending_keys[0]
    parts           number of sub-splits chosen for pending_keys[0], or None
                    if it has not been counted yet

The fingerprint ties a token to the pattern list it was issued for, so a
token replayed against another table is rejected instead of silently
resuming somewhere arbitrary.
"""
from __future__ import annotations

import base64
import hashlib
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from kvsplit.errors import InvalidRequestError


def compute_fingerprint(patterns: list[str]) -> str:
    """Return a short SHA-256 hex digest of the normalized pattern list."""
    joined = ",".join(patterns)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:16]


class ContinuationState(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    version: Literal[1] = 1
    fingerprint: str
    pattern_index: int = Field(default=0, ge=0)
    cursor: int | None = Field(default=0, ge=0)
    pending_keys: tuple[str, ...] = ()
    offset: int = Field(default=0, ge=0)
    parts: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_progress(self) -> "ContinuationState":
        if self.parts is not None:
            if not self.pending_keys:
                raise ValueError("parts given without a pending key")
            if self.offset >= self.parts:
                raise ValueError("offset must be below parts")
        elif self.offset:
            raise ValueError("offset given for a key that was never counted")
        return self

    @classmethod
    def start(cls, patterns: list[str]) -> "ContinuationState":
        return cls(fingerprint=compute_fingerprint(patterns))


def encode_token(state: ContinuationState) -> str:
    raw = state.model_dump_json().encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_token(token: str, patterns: list[str]) -> ContinuationState:
    """Parse *token* and check it belongs to *patterns*.

    Raises:
        InvalidRequestError: when the token cannot be decoded, fails schema
            validation, was issued for a different pattern list, or points
            past the last pattern.
    """
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        state = ContinuationState.model_validate_json(raw)
    except ValueError as exc:
        # binascii.Error, UnicodeError and pydantic.ValidationError are all ValueErrors.
        raise InvalidRequestError(f"malformed continuation token: {exc}") from exc

    if state.fingerprint != compute_fingerprint(patterns):
        raise InvalidRequestError("continuation token was issued for a different pattern list")
    if state.pattern_index >= len(patterns):
        raise InvalidRequestError(
            f"continuation token points at pattern {state.pattern_index} "
            f"but only {len(patterns)} patterns exist"
        )
    return state
