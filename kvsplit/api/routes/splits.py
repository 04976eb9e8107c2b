"""
kvsplit/api/routes/splits.py

Split planning endpoint.

POST /splits
    Accept a SplitsRequest carrying one partition descriptor (flat property
    map) and an optional continuation token, plan the next batch, and return
    it as a SplitsResponse.
"""
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from kvsplit.api.routes import require_api_key
from kvsplit.database.redis import StoreOpener, get_store_opener
from kvsplit.models.partition import SortedSetPartition, from_properties
from kvsplit.models.schemas.splits import ErrorResponse, SplitOut, SplitsRequest, SplitsResponse
from kvsplit.planners.orchestrator import plan

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=SplitsResponse,
    status_code=status.HTTP_200_OK,
    summary="Plan the next batch of splits",
    responses={
        400: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def plan_splits(
    body: SplitsRequest,
    open_store: StoreOpener = Depends(get_store_opener),
    _key: str = Depends(require_api_key),
) -> SplitsResponse:
    """Plan splits for one partition.

    **Partition properties**

    | Property | Meaning |
    |---|---|
    | `redis-endpoint` | `host:port` of the store |
    | `redis-key-prefix` | comma-separated key globs (prefix mode) |
    | `redis-zset-keys` | comma-separated globs naming sorted sets |
    | `redis-value-type` | `literal`, `hash` or `zset` |
    | `redis-ssl-flag` / `redis-cluster-flag` | `true` / `false` |
    | `redis-db-number` | database index |

    Prefix partitions are answered without contacting the store.  Sorted-set
    partitions may come back with a `continuation_token`; call again with it
    until the token is null.
    """
    partition = from_properties(body.partition)
    logger.info(
        "splits_requested",
        mode=partition.mode.value,
        endpoint=partition.connection.endpoint,
        resumed=body.continuation_token is not None,
    )

    if isinstance(partition, SortedSetPartition):
        async with open_store(partition.connection) as redis:
            batch = await plan([partition], redis, token=body.continuation_token)
    else:
        # Prefix partitions never reach the store.
        batch = await plan([partition], None, token=body.continuation_token)

    return SplitsResponse(
        splits=[SplitOut(properties=split.to_properties()) for split in batch.splits],
        continuation_token=batch.continuation_token,
    )
