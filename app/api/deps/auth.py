"""Shared-token guard for back-office routes.

When ``BACKOFFICE_API_TOKEN`` is unset every request is allowed, which is how
the branch terminals run on the shop network.
"""

import hmac
import os

from fastapi import Header, HTTPException, status


def require_user(x_api_token: str | None = Header(default=None)) -> None:
    expected = os.getenv("BACKOFFICE_API_TOKEN")
    if not expected:
        return
    if x_api_token is None or not hmac.compare_digest(x_api_token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API token")
