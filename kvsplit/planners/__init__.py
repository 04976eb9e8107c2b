"""
kvsplit/planners/__init__.py

Shared result type returned by the split planner.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from kvsplit.models.split import Split


@dataclass
class SplitBatch:
    """One planning call's output.

    Attributes:
        splits:             Splits in emission order.  The order is stable for
                            identical inputs and store responses.
        continuation_token: Opaque token to pass to the next call, or None
                            when every split has been handed out.
    """

    splits: list[Split] = field(default_factory=list)
    continuation_token: str | None = None

    @property
    def done(self) -> bool:
        return self.continuation_token is None
