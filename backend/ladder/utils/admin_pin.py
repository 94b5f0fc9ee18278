"""
Shared-secret guard for write endpoints.

Every mutating request must carry the admin PIN in the X-Admin-Pin header.
The expected PIN is read from ADMIN_PIN on each request.
"""

import hmac
import logging
import os
from typing import Optional

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)

ADMIN_PIN_HEADER = "X-Admin-Pin"


def require_admin_pin(x_admin_pin: Optional[str] = Header(default=None, alias=ADMIN_PIN_HEADER)) -> None:
    """
    Dependency that rejects the request unless the admin PIN matches.

    Raises:
        HTTPException 503: ADMIN_PIN is not configured
        HTTPException 401: PIN missing or wrong
    """
    expected = os.getenv("ADMIN_PIN", "")
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin PIN is not configured",
        )

    if not x_admin_pin or not hmac.compare_digest(x_admin_pin.encode(), expected.encode()):
        logger.warning("Rejected write request with bad admin PIN")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Bad PIN")
