from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from redis.asyncio import Redis

from kvsplit.config import settings
from kvsplit.errors import InvalidPartitionError
from kvsplit.models.partition import Connection

StoreOpener = Callable[[Connection], AbstractAsyncContextManager[Redis]]


def parse_endpoint(endpoint: str) -> tuple[str, int]:
    """Split a resolved ``host:port`` endpoint."""
    host, sep, port = endpoint.rpartition(":")
    if not sep or not host:
        raise InvalidPartitionError(f"endpoint must look like host:port, got {endpoint!r}")
    try:
        return host, int(port)
    except ValueError:
        raise InvalidPartitionError(f"endpoint port is not a number: {endpoint!r}") from None


@asynccontextmanager
async def open_store(connection: Connection) -> AsyncGenerator[Redis, None]:
    """Yield a Redis client for *connection*, closed on exit.

    Building the client does not connect; the first command does.  A
    partition that never reaches the store therefore never opens a socket.

    Raises:
        InvalidPartitionError: for a malformed endpoint, or for cluster mode,
            where a single-node SCAN would miss keys held by other shards.
    """
    if connection.cluster_mode:
        raise InvalidPartitionError("cluster mode endpoints cannot be scanned for planning")
    host, port = parse_endpoint(connection.endpoint)
    client = Redis(
        host=host,
        port=port,
        db=connection.db_number,
        password=settings.redis_password or None,
        ssl=connection.tls_enabled,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
        decode_responses=True,
    )
    try:
        yield client
    finally:
        await client.aclose()


def get_store_opener() -> StoreOpener:
    """FastAPI dependency that returns the store opener for a request."""
    return open_store
