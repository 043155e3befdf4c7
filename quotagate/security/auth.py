"""API key authentication for gateway callers.

Validates the X-API-Key header against the configured key=user pairs and
returns the user id the rate limit is keyed on.
"""

import hmac

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

from quotagate.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """FastAPI dependency resolving the caller's API key to a user id."""
    if api_key is None:
        raise HTTPException(status_code=401, detail="Missing API key")

    match: str | None = None
    for valid_key, user_id in get_settings().api_key_users.items():
        # Always iterate all keys to maintain constant-time behavior
        if hmac.compare_digest(api_key.encode(), valid_key.encode()):
            match = user_id

    if match is None:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return match
