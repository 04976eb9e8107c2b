from kvsplit.models.schemas.splits import (
    ErrorResponse,
    SplitOut,
    SplitsRequest,
    SplitsResponse,
)

__all__ = [
    "ErrorResponse",
    "SplitOut",
    "SplitsRequest",
    "SplitsResponse",
]
