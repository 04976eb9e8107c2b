"""
kvsplit/api/routes/__init__.py

Shared FastAPI dependencies used across all route modules.
"""
import secrets

import structlog
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from kvsplit.config import settings

logger = structlog.get_logger(__name__)

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(api_key: str | None = Security(_api_key_header)) -> str:
    """Enforce X-API-Key authentication on planning routes.

    The comparison is constant-time.  Raises HTTP 401 when the key is
    missing or incorrect.
    """
    if api_key is None or not secrets.compare_digest(
        api_key.encode("utf-8"), settings.api_key.encode("utf-8")
    ):
        logger.warning("api_key_rejected", missing=api_key is None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key.",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return api_key
