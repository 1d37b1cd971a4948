import hashlib
import secrets
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from interview_booking.config import get_config

# Service credential sent by the scheduler that drives system-only transitions
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def hash_api_key(api_key: str) -> str:
    """
    Hash an API key using SHA-256.

    Args:
        api_key: The raw API key string

    Returns:
        SHA-256 hash of the key
    """
    return hashlib.sha256(api_key.encode()).hexdigest()


def generate_api_key() -> str:
    """Generate a secure random API key (32 bytes hex)."""
    return secrets.token_hex(32)


async def require_service_key(
    api_key: Optional[str] = Security(api_key_header),
) -> str:
    """
    Validate the service key from the X-API-Key header.

    Raises:
        HTTPException: If the key is missing (401), invalid (403), or no key
            hash is configured (500)
    """
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API Key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    stored_hash = get_config().api_key.key_hash
    if not stored_hash:
        # No hash configured: system-only endpoints stay closed
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration: No API key hash set",
        )

    if not secrets.compare_digest(hash_api_key(api_key), stored_hash):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API Key",
        )
    return api_key
