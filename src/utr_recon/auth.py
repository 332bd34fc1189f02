"""Authentication and rate limiting helpers for the API."""

import os
import secrets
import logging

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

security = HTTPBearer()

limiter = Limiter(key_func=get_remote_address)

SUBMIT_UTR_RATE_LIMIT = os.getenv("SUBMIT_UTR_RATE_LIMIT", "30/minute")


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Security(security)) -> str:
    """Verify the bearer API key against ``API_KEY``.

    Args:
        credentials: HTTP Bearer credentials from the request.

    Returns:
        The verified API key.

    Raises:
        HTTPException: 401 for a wrong key, 500 if ``API_KEY`` is unset.
    """
    api_key = credentials.credentials
    expected_key = os.getenv("API_KEY")
    if not expected_key:
        logger.error("API_KEY environment variable is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not secrets.compare_digest(api_key, expected_key):
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")
    return api_key
