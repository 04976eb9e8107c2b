from pydantic import BaseModel, Field


class SplitsRequest(BaseModel):
    """Request body for split planning."""
    partition: dict[str, str | None] = Field(
        ..., description="Partition descriptor as the layout stage's flat property map"
    )
    continuation_token: str | None = Field(
        default=None, description="Token returned by the previous call for this partition"
    )


class SplitOut(BaseModel):
    """A single split as the reader receives it."""
    properties: dict[str, str]


class SplitsResponse(BaseModel):
    """One batch of planned splits."""
    splits: list[SplitOut] = Field(default_factory=list)
    continuation_token: str | None = Field(
        default=None, description="Pass back to continue planning; null once planning is complete"
    )


class ErrorResponse(BaseModel):
    """Error body shared by every failing route."""
    error: str
    detail: str
    code: str
