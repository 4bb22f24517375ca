"""API key check and rate limiting for the sweep endpoints."""

import os
import secrets
import logging
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


def get_expected_api_key() -> Optional[str]:
    """SWEEP_API_KEY takes precedence over the shared API_KEY."""
    return os.getenv("SWEEP_API_KEY") or os.getenv("API_KEY")


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Security(security)) -> str:
    """Verify the bearer token against the configured API key.

    Raises:
        HTTPException: 500 if no key is configured, 401 if the key does not match.
    """
    api_key = credentials.credentials
    expected_key = get_expected_api_key()
    if not expected_key:
        logger.error("Neither SWEEP_API_KEY nor API_KEY is configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not secrets.compare_digest(api_key, expected_key):
        logger.warning("Rejected sweep request with an invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")
    return api_key
